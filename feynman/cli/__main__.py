"""Allow `python -m feynman.cli`."""

from .main import main

main()
