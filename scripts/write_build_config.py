#!/usr/bin/env python
"""Bake Supabase credentials from the CI environment into khilonjiya/_build.py.

Usage (in the build pipeline, before packaging):
    SUPABASE_URL=... SUPABASE_ANON_KEY=... python scripts/write_build_config.py
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from khilonjiya.core.exceptions import ConfigurationError
from khilonjiya.core.logging import mask_key, mask_url
from khilonjiya.db.credentials import (
    EnvironmentProvider,
    render_build_constants,
    resolve_credentials,
)


def main():
    target = Path(__file__).parent.parent / "khilonjiya" / "_build.py"

    try:
        credentials = resolve_credentials([EnvironmentProvider()])
    except ConfigurationError as e:
        print(f"Error: {e.message}")
        sys.exit(1)

    target.write_text(render_build_constants(credentials), encoding="utf-8")
    print(
        f"Wrote {target} url={mask_url(credentials.url)} key={mask_key(credentials.key)}"
    )


if __name__ == "__main__":
    main()
