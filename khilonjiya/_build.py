"""Build-time constants.

Rewritten by scripts/write_build_config.py during packaging; empty in a
source checkout so the resolver falls through to .env and the environment.
"""

SUPABASE_URL = ""
SUPABASE_ANON_KEY = ""
