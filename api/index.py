"""Serverless handler for the Test-Lab Insights API (Vercel Python runtime)."""

import sys
from pathlib import Path

# The package lives under src/ and settings under config/; neither is installed here
_root = Path(__file__).resolve().parent.parent
for p in (str(_root / "src"), str(_root)):
    if p not in sys.path:
        sys.path.insert(0, p)

from testlab_insights.action.api import app  # noqa: E402

handler = app
