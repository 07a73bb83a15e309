"""Package entry point for ``python -m captionize``.

HOW: Delegates to the CLI's main() function. ``--serve`` starts the
HTTP API instead.
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from captionize.server.app import run_api
        run_api()
    else:
        from captionize.cli import main
        main()
