"""Test configuration ensuring local package import when editable install not active.

If tests are run outside an environment where the project is installed, the
project root is added to sys.path so `import jira_history` works.
"""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
