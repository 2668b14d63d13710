"""Build cycle orchestration: discover, filter, configure, resolve, render, publish, back up."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from .config import PageGenConfig, load_config
from .extractor import extract_body, extract_page_config, has_annotations
from .failsafe import seed_example_page
from .fs import atomic_write_text
from .logging import get_logger
from .models import Manifest, PageConfig, SourceDocument
from .pages import HierarchyResolver, PageConfigBuilder
from .render import TemplateRenderer
from .scanner import SourceScanner
from .sitemap import SiteMapBuilder
from .stores import BackupManager, ChangeDetector, HashLedger


class BuildError(RuntimeError):
    """A failure that aborts the whole cycle."""


class BuildState(str, Enum):
    IDLE = "idle"
    DISCOVERING = "discovering"
    FILTERING = "filtering"
    BUILDING_CONFIGS = "building-configs"
    RESOLVING_HIERARCHY = "resolving-hierarchy"
    RENDERING = "rendering"
    PUBLISHING = "publishing"
    BACKING_UP = "backing-up"


@dataclass
class BuildReport:
    """Outcome of one build cycle."""

    discovered: int = 0
    changed: int = 0
    rendered: int = 0
    skipped: int = 0
    failed: Dict[str, str] = field(default_factory=dict)
    pages_with_errors: int = 0
    manifest_path: Optional[Path] = None
    backup_path: Optional[Path] = None
    pruned: List[Path] = field(default_factory=list)
    seeded: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> Dict[str, object]:
        return {
            "discovered": self.discovered,
            "changed": self.changed,
            "rendered": self.rendered,
            "skipped": self.skipped,
            "failed": dict(self.failed),
            "pagesWithErrors": self.pages_with_errors,
            "manifestPath": str(self.manifest_path) if self.manifest_path else None,
            "backupPath": str(self.backup_path) if self.backup_path else None,
            "pruned": [str(path) for path in self.pruned],
            "seeded": str(self.seeded) if self.seeded else None,
        }


@dataclass
class _LoadedDocument:
    document: SourceDocument
    text: str
    created: str
    modified: str
    needs_render: bool
    page: Optional[PageConfig] = None


class Orchestrator:
    """Runs build cycles for one project; safe to share between a watch loop and callers."""

    def __init__(
        self,
        config: PageGenConfig,
        *,
        scanner: SourceScanner | None = None,
        builder: PageConfigBuilder | None = None,
        resolver: HierarchyResolver | None = None,
        renderer: TemplateRenderer | None = None,
        sitemap: SiteMapBuilder | None = None,
        ledger: HashLedger | None = None,
        backups: BackupManager | None = None,
    ) -> None:
        self.config = config
        self.scanner = scanner or SourceScanner()
        self.builder = builder or PageConfigBuilder(config)
        self.resolver = resolver or HierarchyResolver()
        self.renderer = renderer or TemplateRenderer(config)
        self.sitemap = sitemap or SiteMapBuilder(config)
        self.ledger = ledger or HashLedger(config.ledger_path)
        self.backups = backups or BackupManager(config.backup_dir)
        self.logger = get_logger("orchestrator")
        self.state = BuildState.IDLE
        self.last_report: Optional[BuildReport] = None
        self.last_error: Optional[BaseException] = None
        self._cycle_lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None

    @classmethod
    def from_path(cls, path: str | Path = ".") -> "Orchestrator":
        """Load ``.pagegen.yml`` from ``path`` (a project directory or the file itself)."""
        return cls(load_config(Path(path)))

    def run_build(self, *, force: bool = False) -> BuildReport:
        """Run one full cycle. Raises ``BuildError`` on batch-fatal failures."""
        with self._cycle_lock:
            try:
                report = self._run_cycle(force=force)
            finally:
                self._set_state(BuildState.IDLE)
        self.last_report = report
        return report

    def _run_cycle(self, *, force: bool) -> BuildReport:
        config = self.config
        report = BuildReport()
        self.logger.info("Starting build for %s", config.source_dir)

        self._set_state(BuildState.DISCOVERING)
        documents = self._discover(report)
        report.discovered = len(documents)

        self._set_state(BuildState.FILTERING)
        self.ledger.load()
        detector = ChangeDetector(self.ledger)
        rebuild_all = force or not config.enable_incremental
        loaded = self._filter(documents, detector, report, rebuild_all=rebuild_all)

        self._set_state(BuildState.BUILDING_CONFIGS)
        pages = self._build_configs(loaded, report)

        self._set_state(BuildState.RESOLVING_HIERARCHY)
        try:
            self.resolver.resolve(pages)
        except Exception as exc:
            raise BuildError(f"Hierarchy resolution failed: {exc}") from exc

        self._set_state(BuildState.RENDERING)
        self._render(loaded, pages, report)

        self._set_state(BuildState.PUBLISHING)
        manifest = self.sitemap.build(pages)
        report.pages_with_errors = manifest.statistics.with_errors
        report.manifest_path = self._publish(manifest)

        self._set_state(BuildState.BACKING_UP)
        if config.prune_ledger:
            removed = self.ledger.prune(item.document.filename for item in loaded)
            if removed:
                self.logger.debug("Pruned %d stale ledger entries", len(removed))
        if config.enable_backups:
            self._back_up(manifest, report)
        try:
            self.ledger.persist()
        except OSError as exc:
            raise BuildError(f"Failed to persist hash ledger {self.ledger.path}: {exc}") from exc

        self.logger.info(
            "Build finished: %d discovered, %d changed, %d rendered, %d skipped, %d failed",
            report.discovered,
            report.changed,
            report.rendered,
            report.skipped,
            len(report.failed),
        )
        return report

    def _discover(self, report: BuildReport) -> List[SourceDocument]:
        try:
            self.config.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BuildError(f"Cannot create output directory {self.config.output_dir}: {exc}") from exc
        try:
            documents = self.scanner.discover(self.config)
            if not documents and self.config.seed_example:
                report.seeded = seed_example_page(self.config)
                if report.seeded is not None:
                    documents = self.scanner.discover(self.config)
        except OSError as exc:
            raise BuildError(f"Cannot scan source directory {self.config.source_dir}: {exc}") from exc
        self.logger.debug("Discovered %d source document(s)", len(documents))
        return documents

    def _filter(
        self,
        documents: List[SourceDocument],
        detector: ChangeDetector,
        report: BuildReport,
        *,
        rebuild_all: bool,
    ) -> List[_LoadedDocument]:
        loaded: List[_LoadedDocument] = []
        names: Dict[str, str] = {}
        for document in documents:
            filename = document.filename
            if document.name in names:
                self._fail(report, filename, f"output name {document.name!r} already used by {names[document.name]}")
                continue
            try:
                data = document.path.read_bytes()
                text = data.decode("utf-8")
                stat_result = document.path.stat()
            except (OSError, UnicodeDecodeError) as exc:
                self._fail(report, filename, f"cannot read source: {exc}")
                continue
            names[document.name] = filename

            changed = detector.has_changed(filename, data)
            if changed:
                report.changed += 1
            output_missing = not self._output_path(document).exists()
            needs_render = rebuild_all or changed or output_missing
            loaded.append(
                _LoadedDocument(
                    document=document,
                    text=text,
                    created=_isoformat(min(stat_result.st_ctime, stat_result.st_mtime)),
                    modified=_isoformat(stat_result.st_mtime),
                    needs_render=needs_render,
                )
            )
        return loaded

    def _build_configs(self, loaded: List[_LoadedDocument], report: BuildReport) -> List[PageConfig]:
        total = len(loaded)
        pages: List[PageConfig] = []
        for index, item in enumerate(loaded):
            filename = item.document.filename
            try:
                item.page = self.builder.build(
                    filename,
                    item.text,
                    index,
                    total,
                    created=item.created,
                    modified=item.modified,
                )
            except Exception as exc:
                self._fail(report, filename, f"cannot build page config: {exc}")
                continue
            pages.append(item.page)
        return pages

    def _render(self, loaded: List[_LoadedDocument], pages: List[PageConfig], report: BuildReport) -> None:
        related: Dict[str, PageConfig] = {}
        for page in pages:
            related.setdefault(page.level, page)

        for item in loaded:
            if item.page is None:
                continue
            filename = item.document.filename
            if not item.needs_render:
                if self._output_is_current(item):
                    report.skipped += 1
                    self.logger.debug("Skipping unchanged %s", filename)
                    continue
                self.logger.debug("Re-rendering %s: derived page config changed", filename)
            try:
                output = self.renderer.render(
                    item.page,
                    body=extract_body(item.text),
                    source_has_annotations=has_annotations(item.text),
                    related=related,
                )
                atomic_write_text(self._output_path(item.document), output)
            except Exception as exc:
                self._fail(report, filename, f"cannot render page: {exc}")
                continue
            report.rendered += 1
            self.logger.debug("Rendered %s", filename)

    def _output_is_current(self, item: _LoadedDocument) -> bool:
        try:
            rendered = self._output_path(item.document).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return False
        embedded = extract_page_config(rendered)
        return embedded is not None and _without_timestamps(embedded) == _without_timestamps(item.page.to_dict())

    def _publish(self, manifest: Manifest) -> Path:
        path = self.config.manifest_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write_text(path, manifest.to_json())
        except OSError as exc:
            raise BuildError(f"Failed to write manifest {path}: {exc}") from exc
        self.logger.debug("Manifest written to %s", path)
        return path

    def _back_up(self, manifest: Manifest, report: BuildReport) -> None:
        try:
            report.backup_path = self.backups.snapshot(manifest, self.ledger.snapshot())
        except OSError as exc:
            self.logger.warning("Backup snapshot failed: %s", exc)
            return
        report.pruned = self.backups.prune(self.config.max_backup_count)

    def _fail(self, report: BuildReport, filename: str, message: str) -> None:
        report.failed[filename] = message
        self.ledger.forget(filename)
        self.logger.error("%s: %s", filename, message)

    def _output_path(self, document: SourceDocument) -> Path:
        return self.config.output_dir / f"{document.name}.html"

    def _set_state(self, state: BuildState) -> None:
        if self.state is not state:
            self.logger.debug("State %s -> %s", self.state.value, state.value)
        self.state = state

    # Watch mode

    @property
    def busy(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def tick(self) -> bool:
        """Start a cycle on the worker thread unless one is still running."""
        if self.busy:
            self.logger.info("Build still running; skipping this tick")
            return False
        worker = threading.Thread(target=self._watch_cycle, name="pagegen-build", daemon=True)
        self._worker = worker
        worker.start()
        return True

    def wait(self, timeout: float | None = None) -> None:
        worker = self._worker
        if worker is not None:
            worker.join(timeout)

    def watch(
        self,
        interval_ms: int | None = None,
        stop_event: threading.Event | None = None,
        max_ticks: int | None = None,
    ) -> int:
        """Tick every ``interval_ms`` until ``stop_event`` is set; returns the number of ticks."""
        interval = (interval_ms or self.config.watch_interval_ms) / 1000.0
        stop = stop_event or threading.Event()
        ticks = 0
        self.logger.info("Watching %s every %d ms", self.config.source_dir, int(interval * 1000))
        while not stop.is_set():
            self.tick()
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
            stop.wait(interval)
        self.wait()
        return ticks

    def _watch_cycle(self) -> None:
        try:
            self.run_build()
        except BuildError as exc:
            self.last_error = exc
            self.logger.error("Build cycle failed: %s", exc)
        except Exception as exc:  # pragma: no cover - keep the watch loop alive
            self.last_error = exc
            self.logger.exception("Unexpected failure during build cycle: %s", exc)
        else:
            self.last_error = None


def _without_timestamps(data: Dict[str, object]) -> Dict[str, object]:
    # Timestamps follow the source file's stat, not its content.
    metadata = dict(data.get("metadata") or {})
    metadata.pop("created", None)
    metadata.pop("modified", None)
    return {**data, "metadata": metadata}


def _isoformat(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


__all__ = ["BuildError", "BuildReport", "BuildState", "Orchestrator"]
