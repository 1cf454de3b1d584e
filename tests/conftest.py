import sys
from pathlib import Path

# make the project root importable (adapters, core, config live at the top level)
ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)
