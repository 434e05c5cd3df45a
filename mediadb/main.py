from __future__ import annotations

"""
mediadb/main.py

CLI mínima (`mediadb-search`) sobre el core:

    mediadb-search "Dune" --api OMDbAPI --api "Wikipedia API" --details

- Sin --api: consulta todos los adaptadores registrados.
- --type filtra por tipo de media (repetible).
- --details: pide el detalle del primer stub y lo imprime como JSON (serie de
  TMDBSeasonAPI: lista sus temporadas y detalla la última).
- --list-apis: lista adaptadores y tipos, sin red.

Reglas de consola (alineado con mediadb/logger.py)
--------------------------------------------------
- Resultados: SIEMPRE visibles -> logger.info(..., always=True)
- Estado global (inicio / fin): logger.progress(...)
- Ctrl+C: salida limpia, sin stacktrace.
"""

import argparse
import asyncio
import json
from collections.abc import Sequence

from mediadb import logger
from mediadb.api_manager import ApiManager, QueryResult, build_default_manager
from mediadb.collaborators import series_seasons
from mediadb.config_base import DEBUG_MODE, SILENT_MODE
from mediadb.errors import MediaDbError
from mediadb.media_type import MediaType
from mediadb.models import record_to_dict


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="mediadb-search",
        description="Search media metadata across the registered APIs",
    )
    parser.add_argument("title", nargs="?", default="", help="Title to search for")
    parser.add_argument(
        "--api",
        dest="apis",
        action="append",
        default=[],
        metavar="NAME",
        help="API to query (repeatable; default: all)",
    )
    parser.add_argument(
        "--type",
        dest="types",
        action="append",
        default=[],
        choices=[t.value for t in MediaType],
        help="Only keep records of this media type (repeatable)",
    )
    parser.add_argument("--details", action="store_true", help="Fetch and print the first result in detail")
    parser.add_argument("--list-apis", action="store_true", help="List registered APIs and exit")
    return parser.parse_args(argv)


def _print_apis(manager: ApiManager) -> None:
    for api in manager.apis:
        types = ", ".join(t.value for t in api.types)
        logger.info(f"{api.api_name:<20} [{types}] {api.api_description}", always=True)


def _print_result(result: QueryResult) -> None:
    for record in result.records:
        logger.info(f"{record.data_source:<20} {record.id:<24} {record.summary()}", always=True)
    for failure in result.failures:
        logger.info(f"{failure.api_name:<20} FAILED: {failure.message}", always=True)


async def _run(manager: ApiManager, args: argparse.Namespace) -> int:
    api_names = args.apis or manager.api_names
    types = [MediaType.parse(t) for t in args.types] or None

    result = await manager.query(args.title, api_names, types=types)
    _print_result(result)

    if args.details and result.records:
        target = result.records[0]
        seasons = await series_seasons(manager, target)
        if seasons:
            # Serie de TMDBSeasonAPI: se listan sus temporadas y se detalla la última.
            _print_result(QueryResult(records=seasons))
            target = seasons[-1]
        detail = await manager.query_detailed_info(target)
        logger.info(json.dumps(record_to_dict(detail), indent=2, ensure_ascii=False), always=True)

    return 0 if result.records or result.ok else 1


def main(argv: Sequence[str] | None = None) -> int:
    """Entry-point (console_scripts)."""
    args = _parse_args(argv)
    logger.progress("[MediaDB] Inicio")

    if SILENT_MODE:
        logger.progress("[MediaDB] SILENT_MODE=True" + (" DEBUG_MODE=True" if DEBUG_MODE else ""))
    elif DEBUG_MODE:
        logger.debug_ctx("CLI", "SILENT_MODE=False DEBUG_MODE=True")

    try:
        manager = build_default_manager()
        if args.list_apis:
            _print_apis(manager)
            return 0
        return asyncio.run(_run(manager, args))
    except MediaDbError as exc:
        logger.error(f"[MediaDB] {type(exc).__name__}: {exc}")
        return 2
    except KeyboardInterrupt:
        logger.info("\n[MediaDB] Interrupted by user (Ctrl+C).", always=True)
        return 130
    finally:
        logger.progress("[MediaDB] Fin")


if __name__ == "__main__":
    raise SystemExit(main())
