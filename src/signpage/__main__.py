"""
Run the signpage CLI with ``python -m signpage``.

Examples:
    python -m signpage prepare contract.pdf -p board --field department=Legal
    python -m signpage inspect contract_prepared.pdf
    python -m signpage policies -c policies.json
"""

from .ui.cli import main

main()
