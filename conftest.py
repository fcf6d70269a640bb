# Puts the shared library and the service modules on the import path, the same
# way services/marketplace-service/main.py does at startup
import sys
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "shared"))
sys.path.insert(0, str(project_root / "services" / "marketplace-service"))
