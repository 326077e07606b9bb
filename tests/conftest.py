"""Configure test path so tripcheck packages are importable."""

import sys
from pathlib import Path

# Add src/ to path so `from tripcheck.tasks.models import ...` works
src_dir = Path(__file__).resolve().parent.parent / "src"
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))
