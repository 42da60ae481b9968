"""
Saved Calculations Service - CRUD operations for saved calculator results.
Persists {name, inputs, results, timestamp} records to a key-value store.
"""
import json
import logging
import uuid
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional, Union

from ..engine.models import CalculationResult, CalculatorInputs
from .storage import KeyValueStore


logger = logging.getLogger(__name__)

STORAGE_KEY = 'saas_pricing_calculations'
ID_PREFIX = 'calc_'


class CalculationNotFoundError(KeyError):
    """Raised when a saved calculation id does not exist."""


@dataclass
class SavedCalculation:
    """A calculation persisted by the user."""
    id: str
    name: str
    inputs: dict
    results: dict
    timestamp: str
    notes: str = ""
    updated: Optional[str] = None

    def to_record(self) -> dict:
        return asdict(self)

    @classmethod
    def from_record(cls, record: dict) -> 'SavedCalculation':
        return cls(
            id=record['id'],
            name=record.get('name', ''),
            inputs=record.get('inputs') or {},
            results=record.get('results') or {},
            timestamp=record.get('timestamp') or record.get('date') or '',
            notes=record.get('notes') or '',
            updated=record.get('updated'),
        )

    def result(self) -> CalculationResult:
        """Rebuild the typed result."""
        return CalculationResult.from_dict(self.results)


def generate_calculation_id() -> str:
    return ID_PREFIX + uuid.uuid4().hex[:12]


class SavedCalculationsService:
    """Service for managing saved calculations."""

    EDITABLE_FIELDS = ('name', 'notes', 'inputs', 'results')

    def __init__(self, store: KeyValueStore):
        self.store = store

    def list_calculations(self) -> list[SavedCalculation]:
        """List all saved calculations, oldest first."""
        records = self.store.get(STORAGE_KEY, []) or []
        return [SavedCalculation.from_record(r) for r in records if r.get('id')]

    def get_calculation(self, calculation_id: str) -> Optional[SavedCalculation]:
        """Get a single calculation by ID."""
        for calc in self.list_calculations():
            if calc.id == calculation_id:
                return calc
        return None

    def save_calculation(
        self,
        inputs: Union[CalculatorInputs, dict],
        result: Union[CalculationResult, dict],
        name: Optional[str] = None,
        notes: str = "",
    ) -> SavedCalculation:
        """Save a new calculation."""
        saved = self.list_calculations()
        calc = SavedCalculation(
            id=generate_calculation_id(),
            name=name or f"Calculation {len(saved) + 1}",
            inputs=inputs.to_dict() if isinstance(inputs, CalculatorInputs) else dict(inputs),
            results=result.to_dict() if isinstance(result, CalculationResult) else dict(result),
            timestamp=datetime.now().isoformat(timespec='seconds'),
            notes=notes or "",
        )
        saved.append(calc)
        self._write(saved)
        logger.info("Saved calculation %s (%s)", calc.id, calc.name)
        return calc

    def update_calculation(self, calculation_id: str, updates: dict) -> SavedCalculation:
        """Update name, notes, inputs or results of an existing calculation."""
        saved = self.list_calculations()
        for calc in saved:
            if calc.id == calculation_id:
                for key, value in updates.items():
                    if key in self.EDITABLE_FIELDS:
                        if isinstance(value, (CalculatorInputs, CalculationResult)):
                            value = value.to_dict()
                        setattr(calc, key, value)
                calc.updated = datetime.now().isoformat(timespec='seconds')
                self._write(saved)
                return calc
        raise CalculationNotFoundError(f"Calculation '{calculation_id}' not found")

    def rename_calculation(self, calculation_id: str, name: str) -> SavedCalculation:
        return self.update_calculation(calculation_id, {'name': name})

    def delete_calculation(self, calculation_id: str) -> bool:
        """Delete a calculation."""
        saved = self.list_calculations()
        remaining = [c for c in saved if c.id != calculation_id]
        if len(remaining) == len(saved):
            raise CalculationNotFoundError(f"Calculation '{calculation_id}' not found")
        self._write(remaining)
        logger.info("Deleted calculation %s", calculation_id)
        return True

    def export_json(self) -> str:
        """Export every saved calculation as a JSON array."""
        return json.dumps([c.to_record() for c in self.list_calculations()], indent=2)

    def import_json(self, text: str) -> int:
        """
        Merge calculations from a JSON array.

        Entries with a missing or clashing id get a fresh one.
        Returns the number of imported calculations.
        """
        try:
            imported = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Import is not valid JSON: {e}") from e
        if not isinstance(imported, list):
            raise ValueError("Import must be a JSON array of calculations")

        saved = self.list_calculations()
        existing_ids = {c.id for c in saved}
        count = 0
        for record in imported:
            if not isinstance(record, dict):
                continue
            record = dict(record)
            if not record.get('id') or record['id'] in existing_ids:
                record['id'] = generate_calculation_id()
            if not record.get('timestamp') and not record.get('date'):
                record['timestamp'] = datetime.now().isoformat(timespec='seconds')
            calc = SavedCalculation.from_record(record)
            saved.append(calc)
            existing_ids.add(calc.id)
            count += 1

        self._write(saved)
        logger.info("Imported %d calculations", count)
        return count

    def get_stats(self) -> dict:
        """Get statistics about saved calculations."""
        saved = self.list_calculations()
        return {
            'total': len(saved),
            'latest': max((c.timestamp for c in saved), default=None),
        }

    def _write(self, calculations: list[SavedCalculation]):
        self.store.set(STORAGE_KEY, [c.to_record() for c in calculations])
