import argparse
import logging
from pathlib import Path

from mockup.config import Config
from mockup.pipeline.mockup_pipeline import MockupPipeline


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Render a logo mockup per CSV row onto a product template.")
    p.add_argument("--template", type=Path, help="template image with a marker-colored placement zone")
    p.add_argument("--csv", type=Path, help="CSV with a logo / logo_url / logo_image column")
    p.add_argument("--out", type=Path, help="output directory")
    p.add_argument("--preset", help="color preset (strict, standard, wide, ...)")
    p.add_argument("--tolerance", type=float)
    p.add_argument("--placement-type", choices=["horizontal", "vertical", "all_over"])
    p.add_argument("--naming", choices=["index", "name"])
    p.add_argument("--workers", type=int)
    p.add_argument("--no-detect", action="store_true", help="use the fallback box instead of detecting")
    p.add_argument("--block-invalid", action="store_true", help="skip rows when the zone fails validation")
    p.add_argument("--log-level")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    overrides = {
        "TEMPLATE_PATH": args.template,
        "CSV_PATH": args.csv,
        "OUT_DIR": args.out,
        "PRESET": args.preset,
        "TOLERANCE": args.tolerance,
        "PLACEMENT_TYPE": args.placement_type,
        "NAMING_MODE": args.naming,
        "MAX_WORKERS": args.workers,
        "LOG_LEVEL": args.log_level,
    }
    if args.no_detect:
        overrides["DETECT_REGION"] = False
    if args.block_invalid:
        overrides["BLOCK_ON_INVALID"] = True
    cfg = Config.from_env(**overrides)

    logging.basicConfig(
        level=getattr(logging, cfg.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    summary = MockupPipeline(cfg).run()
    return 1 if summary.failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
