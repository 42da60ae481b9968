#!/usr/bin/env python
"""
Launch the SaaS Pricing Calculator UI (Streamlit).

The UI imports saas_pricing, so src/ is put on PYTHONPATH for a checkout
that was not pip-installed. Extra arguments go straight to `streamlit run`.

Usage:
    python scripts/run_app.py [--server.port 8502]
"""
import os
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
UI_PATH = PROJECT_ROOT / 'src' / 'saas_pricing' / 'ui' / 'app_streamlit.py'


def build_command(extra_args=None):
    return [sys.executable, '-m', 'streamlit', 'run', str(UI_PATH), *(extra_args or [])]


def build_env(base=None):
    env = dict(os.environ if base is None else base)
    src_path = str(PROJECT_ROOT / 'src')
    existing = env.get('PYTHONPATH')
    env['PYTHONPATH'] = f"{src_path}{os.pathsep}{existing}" if existing else src_path
    return env


def main():
    if not UI_PATH.exists():
        print(f"ERROR: calculator UI not found at {UI_PATH}")
        sys.exit(1)

    cmd = build_command(sys.argv[1:])
    print(f"Starting SaaS Pricing Calculator: {' '.join(cmd)}")

    try:
        subprocess.run(cmd, cwd=str(PROJECT_ROOT), env=build_env())
    except KeyboardInterrupt:
        print("\nCalculator stopped.")


if __name__ == "__main__":
    main()
