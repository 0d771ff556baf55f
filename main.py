"""
ProseGate - Entry point.

Usage:
    python main.py                                      # Run CLI help
    python main.py checklist guaranty --program sba_7a  # Show a checklist
    python main.py generate deal.json -t promissory_note  # Generate and gate prose
"""

from prosegate.cli.main import app


def main():
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    main()
