#!/usr/bin/env python3
"""Sample workbook generator for manual runs and performance checks.

Generates synthetic compatibility-matrix workbooks in the layouts the
ingestion pipeline understands:

- software: Windows / macOS / Lightroom / host-app / PureRAW / Nik sheets
  (row 1 title, row 2 headers from column C, labels in column B)
- denoising: a single "EN" sheet (technology headers from column D,
  capability names in column C)
- cameras_lenses: "Planning cameras" / "Planning lenses" catalog tables
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

STATUS_CHOICES = ["✓", "✓", "✓", "✕", "-", "64bit only", None]
SENSOR_CHOICES = ["✓", "✓", "Bayer", "X-Trans", "✕", None]

PRODUCTS = ["DxO PhotoLab", "DxO PureRAW", "DxO FilmPack", "DxO ViewPoint"]
WINDOWS_TARGETS = ["Windows 10", "Windows 11", "Windows 11 ARM"]
MACOS_TARGETS = ["Monterey 12", "Ventura 13", "Sonoma 14", "Sequoia 15"]
HOSTS = ["Adobe Photoshop 2025", "Affinity Photo 2", "Lightroom Classic", "DxO PhotoLab 8"]
NIK_PLUGINS = ["Color Efex Pro", "Silver Efex Pro", "Viveza", "Dfine", "Sharpener Pro", "HDR Efex Pro"]
DENOISING_TECHS = ["HQ", "PRIME", "DeepPRIME", "DeepPRIME XD", "DeepPRIME XD2s"]
CAPABILITIES = ["CPU", "GPU", "Bayer", "XTrans"]

CAMERA_COLUMNS = [
    "Brand", "Model", "Sensor", "Mount", "Calibration type", "Customer status", "Start",
    "Engine Status", "CLSS package", "PL Version", "PL Support", "PR Version", "PR Support",
    "FP Version", "FP Support", "VP Version", "VP Support", "NPFX Version", "NPFX Support",
    "Support LR", "Support C1", "Support On1",
]
LENS_COLUMNS = [
    "Release year", "Release Quarter", "RTM CLSS", "Brand", "Model", "Mount", "Nb calibration",
    "Lens Type", "Start", "Calibration ready", "Intermediate status", "Status", "C1",
]
BRANDS = ["Canon", "Nikon", "Sony", "Fujifilm", "Panasonic", "OM System", "Leica", "Sigma"]


def _pick(choices: list[Any], n: int) -> list[Any]:
    return [choices[i] for i in np.random.randint(0, len(choices), n)]


def _matrix_sheet(title: str, corner: str, targets: list[str], labels: list[str]) -> list[list[Any]]:
    rows: list[list[Any]] = [[None, title], [None, corner, *targets]]
    for label in labels:
        rows.append([None, label, *_pick(STATUS_CHOICES, len(targets))])
    return rows


def _product_labels(products: int) -> list[str]:
    labels = []
    for i in range(products):
        name = PRODUCTS[i % len(PRODUCTS)]
        labels.append(f"{name} {4 + i // len(PRODUCTS)}")
    return labels


def software_sheets(products: int) -> dict[str, list[list[Any]]]:
    labels = _product_labels(products)
    nik: list[list[Any]] = [[None, "Nik Collection"]]
    for version in (8, 7, 6):
        nik.append([None, f"Plugins\nNik Collection {version}", "Photoshop", "Lightroom Classic", "Affinity Photo"])
        for plugin in NIK_PLUGINS:
            nik.append([None, plugin, *_pick(STATUS_CHOICES, 3)])

    pureraw: list[list[Any]] = [
        [None, "PureRAW"],
        [None, "Export to", "Lightroom Classic", "Photoshop"],
    ]
    for version in range(1, 6):
        pureraw.append([None, f"DxO PureRAW {version}", *_pick(STATUS_CHOICES, 2)])
    pureraw.append([None, "Plugin instance", "Lightroom Classic"])
    for version in range(3, 6):
        pureraw.append([None, f"DxO PureRAW {version}", *_pick(STATUS_CHOICES, 1)])

    return {
        "Windows": _matrix_sheet("Windows compatibility", "Product", WINDOWS_TARGETS, labels),
        "macOS": _matrix_sheet("macOS compatibility", "Product", MACOS_TARGETS, labels),
        "LR": _matrix_sheet(
            "Lightroom",
            "Host",
            labels[: min(len(labels), 6)],
            ["Lightroom Classic\nplugin", "Lightroom Classic\nexport", "Lightroom Classic\nplugin + export"],
        ),
        "FilmPack vs hosts": _matrix_sheet("Hosts", "Host", ["DxO FilmPack 7", "DxO ViewPoint 5"], HOSTS),
        "PureRAW": pureraw,
        "Nik Collection": nik,
        "Notes": [["Generated sample workbook"]],
    }


def denoising_sheets(products: int) -> dict[str, list[list[Any]]]:
    rows: list[list[Any]] = [[None, "Denoising technologies"], [None, "Product", None, *DENOISING_TECHS]]
    for label in _product_labels(products):
        rows.append([None, label, None, *_pick(SENSOR_CHOICES, len(DENOISING_TECHS))])
    for capability in CAPABILITIES:
        rows.append([None, None, capability, *_pick(SENSOR_CHOICES, len(DENOISING_TECHS))])
    rows.append([None, "Legend: ✓ supported, ✕ not supported"])
    return {"EN": rows, "FR": [[None, "Technologies de débruitage"]]}


def catalog_sheets(products: int) -> dict[str, list[list[Any]]]:
    cameras: list[list[Any]] = [CAMERA_COLUMNS]
    for i in range(products):
        brand = BRANDS[i % len(BRANDS)]
        row: list[Any] = [brand, f"Model {np.random.randint(1, 99)}-{i}"]
        row += _pick(["Bayer", "X-Trans", "Foveon", None], 1)
        row += _pick(["RF", "Z", "E", "X", "L", "MFT"], 1)
        row += _pick(["full", "partial", None], len(CAMERA_COLUMNS) - 4)
        cameras.append(row)
    lenses: list[list[Any]] = [LENS_COLUMNS]
    for i in range(products):
        year = int(np.random.randint(2015, 2026))
        lenses.append(
            [year, f"Q{np.random.randint(1, 5)}", "yes", BRANDS[i % len(BRANDS)], f"{np.random.randint(14, 600)}mm"]
            + _pick(["RF", "Z", "E", "X", "L"], 1)
            + [int(np.random.randint(1, 12))]
            + _pick(["prime", "zoom"], 1)
            + _pick(["ready", "pending", None], len(LENS_COLUMNS) - 8)
        )
    return {"Planning cameras": cameras, "Planning lenses": lenses, "Readme": [["Generated sample catalog"]]}


GENERATORS = {
    "software": software_sheets,
    "denoising": denoising_sheets,
    "cameras_lenses": catalog_sheets,
}


def create_workbook(output_path: Path, variant: str, products: int, seed: int = 42) -> dict[str, int]:
    """Write the sample workbook; returns rows per sheet."""
    np.random.seed(seed)
    sheets = GENERATORS[variant](products)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            pd.DataFrame(rows, dtype=object).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return {name: len(rows) for name, rows in sheets.items()}


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic compatibility-matrix workbook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data/software.xlsx
  %(prog)s data/denoising.xlsx --variant denoising --products 40
  %(prog)s data/planning.xlsx --variant cameras_lenses --products 2000 --seed 7
        """,
    )
    parser.add_argument("output", type=Path, help="Output Excel file path")
    parser.add_argument("--variant", choices=sorted(GENERATORS), default="software")
    parser.add_argument("--products", type=int, default=12, help="Product / catalog rows per sheet (default: 12)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--dry-run", action="store_true", help="Show the plan without writing the file")
    args = parser.parse_args()

    if args.products <= 0:
        print("Error: --products must be positive", file=sys.stderr)
        return 1

    print("Workbook generation plan:")
    print(f"  Output file: {args.output}")
    print(f"  Variant: {args.variant}")
    print(f"  Products: {args.products:,}")
    print(f"  Random seed: {args.seed}")
    if args.dry_run:
        print("\n[DRY RUN] Would generate the workbook but not creating it.")
        return 0

    try:
        counts = create_workbook(args.output, args.variant, args.products, args.seed)
    except OSError as e:
        print(f"\nError generating workbook: {e}", file=sys.stderr)
        return 1
    for name, n in counts.items():
        print(f"  {name}: {n} rows")
    print(f"\nCreated Excel file: {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
