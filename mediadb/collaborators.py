from __future__ import annotations

"""
mediadb/collaborators.py

Contratos con los colaboradores externos (almacenamiento de notas y elección del usuario)
y el flujo de importación que los une:

    query -> elegir stubs -> (TMDBSeasonAPI: elegir temporadas) -> detalle
          -> remapeo -> nombre/carpeta -> sink

El core no sabe cómo se guarda una nota ni cómo se presenta una lista al usuario:
solo llama a `NoteSink.write_note(...)` y a `UserChoice.present(...)`.

Fallos
------
- Detalles y escrituras se aíslan por registro (como la query): un detalle roto o una
  nota que no se pudo escribir se reportan en ImportReport.failures.
- Cancelar en la elección no es un error: ImportReport.outcome == CANCEL.
"""

import asyncio
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from mediadb import logger
from mediadb.api_manager import ApiFailure, ApiManager
from mediadb.cancellation import CancellationToken, ensure_token
from mediadb.clients.tmdb_client import TMDBSeasonApi, is_season_id
from mediadb.errors import MediaDbError, QueryCancelledError
from mediadb.media_type import MediaType
from mediadb.models import MediaRecord
from mediadb.naming import NoteNaming
from mediadb.property_mapping import PropertyMapper


class ChoiceKind(str, Enum):
    SELECTION = "selection"
    SKIP = "skip"
    CANCEL = "cancel"


@dataclass(frozen=True)
class ChoiceOutcome:
    kind: ChoiceKind
    selected: tuple[MediaRecord, ...] = ()

    @classmethod
    def selection(cls, records: Iterable[MediaRecord]) -> "ChoiceOutcome":
        return cls(ChoiceKind.SELECTION, tuple(records))

    @classmethod
    def skip(cls) -> "ChoiceOutcome":
        return cls(ChoiceKind.SKIP)

    @classmethod
    def cancel(cls) -> "ChoiceOutcome":
        return cls(ChoiceKind.CANCEL)


class UserChoice(Protocol):
    def present(self, options: Sequence[MediaRecord]) -> ChoiceOutcome: ...


class NoteSink(Protocol):
    def write_note(self, path: str, metadata: dict[str, object], record: MediaRecord) -> None: ...


@dataclass
class ImportReport:
    outcome: ChoiceKind = ChoiceKind.SKIP
    written: list[str] = field(default_factory=list)
    failures: list[ApiFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


async def query_details(
    manager: ApiManager,
    records: Sequence[MediaRecord],
    *,
    token: CancellationToken | None = None,
) -> tuple[list[MediaRecord], list[ApiFailure]]:
    """Detalle en paralelo; devuelve (detalles en orden de entrada, fallos)."""
    tok = ensure_token(token)
    tasks = [asyncio.create_task(manager.query_detailed_info(r, token=tok)) for r in records]
    for task in tasks:
        tok.attach(task)  # type: ignore[arg-type]

    outcomes = await asyncio.gather(*tasks, return_exceptions=True)
    tok.raise_if_cancelled()

    details: list[MediaRecord] = []
    failures: list[ApiFailure] = []
    for record, outcome in zip(records, outcomes):
        if isinstance(outcome, BaseException):
            if isinstance(outcome, (KeyboardInterrupt, SystemExit)):
                raise outcome
            logger.warning(f"Detail query failed for {record.data_source}:{record.id}: {outcome!r}")
            failures.append(ApiFailure(record.data_source, outcome))
            continue
        details.append(outcome)
    return details, failures


async def series_seasons(
    manager: ApiManager,
    record: MediaRecord,
    *,
    token: CancellationToken | None = None,
) -> list[MediaRecord] | None:
    """
    Temporadas de la serie de un stub de TMDBSeasonAPI.

    None si el stub no es una serie de ese adaptador (ya es una temporada, u otra API).
    """
    api = manager.get_api_by_name(record.data_source)
    if not isinstance(api, TMDBSeasonApi) or is_season_id(record.id):
        return None
    return await api.get_seasons_for_series(record.id, token=token)


async def _choose_seasons(
    manager: ApiManager,
    selected: Sequence[MediaRecord],
    chooser: UserChoice,
    report: ImportReport,
    token: CancellationToken,
) -> list[MediaRecord] | None:
    """
    Sustituye cada serie de TMDBSeasonAPI por las temporadas que elija el usuario.

    None si el usuario cancela; una serie omitida no aporta temporadas.
    """
    out: list[MediaRecord] = []
    for record in selected:
        try:
            seasons = await series_seasons(manager, record, token=token)
        except QueryCancelledError:
            raise
        except MediaDbError as exc:
            logger.warning(f"Season listing failed for {record.data_source}:{record.id}: {exc!r}")
            report.failures.append(ApiFailure(record.data_source, exc))
            continue
        if seasons is None:
            out.append(record)
            continue

        choice = chooser.present(seasons)
        if choice.kind == ChoiceKind.CANCEL:
            return None
        if choice.kind == ChoiceKind.SELECTION:
            out.extend(choice.selected)
    return out


async def import_by_title(
    manager: ApiManager,
    title: str,
    api_names: Iterable[str],
    *,
    chooser: UserChoice,
    sink: NoteSink,
    mapper: PropertyMapper | None = None,
    naming: NoteNaming | None = None,
    types: Sequence[MediaType] | None = None,
    token: CancellationToken | None = None,
) -> ImportReport:
    tok = ensure_token(token)
    result = await manager.query(title, api_names, types=types, token=tok)
    report = ImportReport(failures=list(result.failures))

    if not result.records:
        logger.info(f"No results for {title!r}")
        return report

    choice = chooser.present(result.records)
    report.outcome = choice.kind
    if choice.kind != ChoiceKind.SELECTION or not choice.selected:
        logger.debug_ctx("IMPORT", f"choice for {title!r}: {choice.kind.value}")
        return report

    selected = await _choose_seasons(manager, choice.selected, chooser, report, tok)
    if selected is None:
        report.outcome = ChoiceKind.CANCEL
        logger.debug_ctx("IMPORT", f"season choice for {title!r}: cancel")
        return report

    details, detail_failures = await query_details(manager, selected, token=tok)
    report.failures.extend(detail_failures)

    prop_mapper = mapper or PropertyMapper()
    note_naming = naming or NoteNaming()
    for record in details:
        path = note_naming.note_path(record)
        try:
            sink.write_note(path, prop_mapper.convert(record), record)
        except Exception as exc:
            logger.warning(f"Failed to write note {path!r}: {exc!r}")
            report.failures.append(ApiFailure(record.data_source, exc))
            continue
        report.written.append(path)

    if report.failures:
        logger.warning(f"{len(report.written)} of {len(details)} note(s) created for {title!r}")
    else:
        logger.info(f"{len(report.written)} note(s) created for {title!r}")
    return report
