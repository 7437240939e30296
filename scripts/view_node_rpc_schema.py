# FILE: scripts/view_node_rpc_schema.py
# Usage: NCTL=/path/to/nctl python scripts/view_node_rpc_schema.py net=1 node=2
import sys

from nctl.cli import view_node_rpc_schema

sys.exit(view_node_rpc_schema(sys.argv[1:]))
