import os
import sys

# worker_supervisor_main lives at the repository root, outside the package
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)
