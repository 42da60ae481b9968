"""
Share tokens - URL-embeddable encoding of {inputs, results}.
"""
import base64
import binascii
import json
from dataclasses import dataclass

from ..engine.models import CalculationResult, CalculatorInputs


class ShareTokenError(ValueError):
    """Raised when a share token cannot be decoded."""


@dataclass(frozen=True)
class SharedCalculation:
    inputs: CalculatorInputs
    result: CalculationResult


def encode_share_token(inputs: CalculatorInputs, result: CalculationResult) -> str:
    """Serialize inputs and results into a URL-safe token."""
    payload = {'inputs': inputs.to_dict(), 'results': result.to_dict()}
    raw = json.dumps(payload, separators=(',', ':'), sort_keys=True).encode('utf-8')
    return base64.urlsafe_b64encode(raw).decode('ascii').rstrip('=')


def decode_share_token(token: str) -> SharedCalculation:
    """Reverse encode_share_token()."""
    token = (token or '').strip()
    if not token:
        raise ShareTokenError("Share token is empty")
    padded = token + '=' * (-len(token) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(padded.encode('ascii')).decode('utf-8'))
        return SharedCalculation(
            inputs=CalculatorInputs.from_dict(payload['inputs']),
            result=CalculationResult.from_dict(payload['results']),
        )
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as e:
        raise ShareTokenError(f"Invalid share token: {e}") from e
