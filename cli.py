# cli.py

"""
Launcher for running CatalogScout from a source checkout without installing it.

Example:
    python cli.py --config configs/default.yaml crawl --brand kravet --max-products 20 --summary-json reports/summary.json
"""
from catalog_scout.cli import cli


if __name__ == '__main__':
    cli()
