# One-shot tool: create bridge spreadsheets listed in a "一括作成リスト" sheet.
#
# Usage:
#   python provision_bridges.py <list-spreadsheet-id-or-url>
#
# Column A = bridge name (required), B = subfolder name (optional).
# Results are written back to column C.
from __future__ import annotations

import argparse
import logging
import re
import sys

from core.errors import BridgeInspectionError
from core.wiring import build_components, build_provisioner
from settings import get_settings


def _extract_spreadsheet_id(value: str) -> str:
    """Accepts either spreadsheet_id OR full Google Sheets URL."""
    s = (value or "").strip()
    m = re.search(r"/spreadsheets/d/([a-zA-Z0-9-_]+)", s)
    if m:
        return m.group(1)
    return s


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create bridge spreadsheets from a list sheet.")
    parser.add_argument("list_spreadsheet", help="ID or URL of the spreadsheet holding the list sheet")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    settings = get_settings()
    components = build_components(settings)
    provisioner = build_provisioner(settings, components)

    try:
        summary = provisioner.provision_from_list_sheet(
            _extract_spreadsheet_id(args.list_spreadsheet),
            settings.provision_list_sheet,
        )
    except BridgeInspectionError as e:
        print(f"✗ {e.message}")
        return 1

    if summary.list_sheet_created:
        print(f"📝 Created sheet '{settings.provision_list_sheet}'.")
        print("   Put bridge names in column A and run again.")
        return 0

    if not summary.results:
        print("Nothing to create (list is empty).")
        return 0

    print(f"✅ Done. created: {summary.created}, skipped: {summary.skipped}, errors: {summary.errors}")
    return 0 if summary.errors == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
