"""
Formula profiles and static tier data.

The calculator historically shipped in two variants: a basic one and an
enhanced one with a richer formula set. Both are served by the same engine,
selected by profile name.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class TierSpec:
    """Static description of a pricing tier."""
    key: str
    name: str
    features: tuple[str, ...]
    target_segment: str
    projected_adoption: str
    recommended: bool = False


@dataclass(frozen=True)
class FormulaProfile:
    """Multipliers that distinguish one calculator variant from another."""
    name: str
    competitor_factor: float  # optimal price = competitor * factor
    current_factor: float     # used when there is no competitor price
    tier_multipliers: tuple[float, float, float]  # starter, professional, enterprise


PROFILES = {
    'enhanced': FormulaProfile(
        name='enhanced',
        competitor_factor=0.85,
        current_factor=1.35,
        tier_multipliers=(0.6, 1.0, 2.2),
    ),
    'simple': FormulaProfile(
        name='simple',
        competitor_factor=1.1,
        current_factor=1.1,
        tier_multipliers=(0.5, 1.0, 2.5),
    ),
}


TIER_SPECS = (
    TierSpec(
        key='starter',
        name='Starter',
        features=(
            'Up to 10 users',
            'Core features',
            'Email support',
            'Monthly billing',
        ),
        target_segment='Small teams and startups',
        projected_adoption='45%',
    ),
    TierSpec(
        key='professional',
        name='Professional',
        features=(
            'Up to 50 users',
            'All features',
            'Priority support',
            'Advanced analytics',
            'Custom integrations',
        ),
        target_segment='Growing businesses',
        projected_adoption='35%',
        recommended=True,
    ),
    TierSpec(
        key='enterprise',
        name='Enterprise',
        features=(
            'Unlimited users',
            'Custom features',
            'Dedicated support',
            'SLA guarantee',
            'Custom contracts',
        ),
        target_segment='Large organizations',
        projected_adoption='20%',
    ),
)


def get_profile(name: str) -> FormulaProfile:
    """Look up a formula profile by name."""
    key = str(name).strip().lower()
    if key not in PROFILES:
        raise ValueError(
            f"Unknown formula profile '{name}'. "
            f"Expected one of: {', '.join(sorted(PROFILES))}"
        )
    return PROFILES[key]
