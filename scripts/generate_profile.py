from __future__ import annotations

import argparse
import asyncio
import json
import re
from pathlib import Path
from typing import List, Optional

from loguru import logger

import sys as _sys_for_sys
_pkg_root = str((Path(__file__).resolve().parents[1]))
if _pkg_root not in _sys_for_sys.path:
    _sys_for_sys.path.insert(0, _pkg_root)

from companion.errors import GenerationError
from companion.generator import generate_persona_profile
from companion.schemas import to_dict
from companion.states import LANGUAGE_OPTIONS


# Resolve project root from this script's location
ROOT = Path(__file__).resolve().parents[1]

# Output folder for generated JSON files.
OUT_DIR = ROOT / "generated_profiles"

# Concurrency for running generations in parallel.
CONCURRENCY = 3


def slugify(name: str) -> str:
    slug = re.sub(r"[^\w]+", "_", name.strip(), flags=re.UNICODE).strip("_")
    return slug or "profile"


async def process_one(person: str, language: str, out_dir: Path, overwrite: bool) -> Optional[Path]:
    out_path = out_dir / f"{slugify(person)}__{language}.json"
    if out_path.exists() and not overwrite:
        logger.info(f"Skip existing: {out_path}")
        return out_path
    try:
        profile = await generate_persona_profile(person, language)
    except GenerationError as e:
        logger.error(f"Generation failed for {person}: {e}")
        return None
    out_dir.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8") as f:
        json.dump(to_dict(profile), f, ensure_ascii=False, indent=2)
    logger.info(f"Wrote {out_path}")
    return out_path


async def main_async(people: List[str], language: str, out: Path, concurrency: int, overwrite: bool) -> None:
    sem = asyncio.Semaphore(concurrency)

    async def _wrap(person: str):
        async with sem:
            return await process_one(person, language, out, overwrite)

    await asyncio.gather(*(_wrap(p) for p in people))


def main() -> None:
    p = argparse.ArgumentParser(description="Generate persona profile JSON files for historical figures")
    p.add_argument("people", nargs="+", help="Names of historical figures")
    p.add_argument("--language", choices=LANGUAGE_OPTIONS, default="English")
    p.add_argument("--out", type=Path, default=OUT_DIR)
    p.add_argument("--concurrency", type=int, default=CONCURRENCY)
    p.add_argument("--overwrite", action="store_true")
    args = p.parse_args()
    asyncio.run(main_async(args.people, args.language, args.out.resolve(), max(1, args.concurrency), args.overwrite))


if __name__ == "__main__":
    main()
