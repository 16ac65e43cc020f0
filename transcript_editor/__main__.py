"""Package entry point for ``python -m transcript_editor``.

RULES:
- ``--serve`` starts the HTTP API (uvicorn)
- Without ``--serve``, falls through to the CLI
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from transcript_editor.server.app import run_api
        run_api()
    else:
        from transcript_editor.cli import main
        main()
