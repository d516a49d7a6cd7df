#!/usr/bin/env python3
"""
Translation Assistant - Development Launcher
============================================
Start the API server from a source checkout.

Usage:
    python run.py
    translation-assistant
"""
import sys
import os
from pathlib import Path

# Add package to path if running directly
package_dir = Path(__file__).parent
if str(package_dir) not in sys.path:
    sys.path.insert(0, str(package_dir))

os.environ.setdefault('TRANSLATION_ASSISTANT_APP_DIR', str(package_dir))


# Colors for terminal output
class Colors:
    RESET = '\033[0m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'


def main():
    """Main entry point"""
    from translation_assistant.config import config
    from translation_assistant.app import run_server

    for warning in config.warnings():
        print(f"{Colors.YELLOW}⚠ {warning}{Colors.RESET}")

    print(f"{Colors.GREEN}Starting Translation Assistant on "
          f"http://{config.server.host}:{config.server.port}{Colors.RESET}")
    run_server()


if __name__ == '__main__':
    main()
