#!/usr/bin/env python3
"""
Entry point script for web-audit CLI.
Can be used directly: python -m web_audit
"""

if __name__ == "__main__":
    from web_audit.cli.main import main
    import sys
    sys.exit(main())
