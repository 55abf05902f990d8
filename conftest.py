import os
import sys
from pathlib import Path

# Running `pytest` from the repo root imports `apps` and `storefront` from backend/.
BACKEND_DIR = Path(__file__).resolve().parent / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "storefront.settings")
