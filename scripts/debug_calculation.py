import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from saas_pricing.engine import MetricsEngine, CalculatorInputs


def debug():
    inputs = CalculatorInputs.from_dict(dict(arg.split('=', 1) for arg in sys.argv[1:]))

    for profile in ('enhanced', 'simple'):
        engine = MetricsEngine(profile)
        result = engine.calculate(inputs)

        print(f"\n--- Profile: {profile} ---")
        print("Trace:")
        print(result.get_trace_text())
        print("\nMetrics:")
        print(result.metrics)
        print("\nTiers:")
        for tier in result.tiers.as_list():
            print(f"  {tier.name}: ${tier.price}{' (recommended)' if tier.recommended else ''}")
        print("\nInsights:")
        for insight in result.insights:
            print(f"  [{insight.type}] {insight.title}: {insight.message}")


if __name__ == "__main__":
    debug()
