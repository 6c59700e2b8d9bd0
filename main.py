"""
skillpack - Skill bundle resolver

Main entry point when running from a source checkout.
"""

from skillpack.cli import cli


if __name__ == "__main__":
    cli()
