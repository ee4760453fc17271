"""Pipeline orchestration for regenerating project.aidl."""

from __future__ import annotations

import dataclasses
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .classifier import Classifier
from .config import AidlPrepConfig, ConfigError, load_config
from .errors import AidlPrepError, ScanCancelled
from .logging import project_logger
from .models import CancellationToken, GenerationResult, GenerationStatus, RunState
from .scanner import Scanner
from .source_model import SourceModel, TreeSitterSourceModel
from .workspace import CommandWorkspace, NullWorkspace, Workspace
from .writer import ArtifactWriter, render_artifact

ModelFactory = Callable[[Path, AidlPrepConfig], SourceModel]

_TRANSITIONS = {
    RunState.IDLE: {RunState.SCANNING, RunState.FAILED},
    RunState.SCANNING: {RunState.WRITING, RunState.SKIPPED, RunState.FAILED},
    RunState.WRITING: {RunState.DONE, RunState.FAILED},
    RunState.SKIPPED: {RunState.DONE},
    RunState.DONE: set(),
    RunState.FAILED: set(),
}


def _default_model_factory(project_root: Path, config: AidlPrepConfig) -> SourceModel:
    return TreeSitterSourceModel(project_root, config)


class _Invocation:
    """Tracks one project's walk through the run state machine."""

    def __init__(self, project: Path) -> None:
        self.project = project
        self.transitions: List[RunState] = [RunState.IDLE]
        self.logger = project_logger("generator", project)

    @property
    def state(self) -> RunState:
        return self.transitions[-1]

    def advance(self, state: RunState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid transition {self.state.value} -> {state.value}")
        self.logger.debug("%s -> %s", self.state.value, state.value)
        self.transitions.append(state)

    def finish(self, status: GenerationStatus, **fields: object) -> GenerationResult:
        if self.state is not RunState.WRITING:
            self.advance(RunState.SKIPPED)
        self.advance(RunState.DONE)
        return GenerationResult(
            project=self.project,
            status=status,
            transitions=list(self.transitions),
            **fields,  # type: ignore[arg-type]
        )

    def fail(self, exc: BaseException, parcelables: Optional[List[str]] = None) -> GenerationResult:
        self.advance(RunState.FAILED)
        self.logger.error("aidl preprocess failed: %s", exc)
        return GenerationResult(
            project=self.project,
            status=GenerationStatus.FAILED,
            parcelables=list(parcelables or []),
            error=str(exc),
            transitions=list(self.transitions),
        )


class ParcelableIndexGenerator:
    """Scans projects for Parcelable classes and regenerates their project.aidl."""

    def __init__(
        self,
        model_factory: ModelFactory | None = None,
        workspace: Workspace | None = None,
        marker_interface: str | None = None,
    ) -> None:
        self.model_factory = model_factory or _default_model_factory
        self.workspace = workspace
        self.marker_interface = marker_interface

    def run(
        self,
        path: str | Path,
        *,
        cancel_token: CancellationToken | None = None,
        dry_run: bool = False,
    ) -> GenerationResult:
        """Run one invocation for the project at ``path`` and return its single outcome."""
        invocation = _Invocation(Path(path).expanduser().resolve())
        project_root = invocation.project
        logger = invocation.logger
        logger.info("Creating aidl preprocess file for %s", project_root)

        parcelables: List[str] = []
        try:
            self._check_project(project_root)
            config = self._load_config(project_root)
            model = self.model_factory(project_root, config)
            invocation.advance(RunState.SCANNING)
            parcelables = self._scan(model, config.marker_interface, cancel_token)
        except ScanCancelled as exc:
            logger.info("%s", exc)
            return invocation.finish(GenerationStatus.CANCELLED)
        except (AidlPrepError, ConfigError, OSError) as exc:
            return invocation.fail(exc)

        logger.info("Found %d parcelable types", len(parcelables))

        if not parcelables:
            return invocation.finish(GenerationStatus.SKIPPED)

        if dry_run:
            return invocation.finish(
                GenerationStatus.DRY_RUN,
                parcelables=parcelables,
                content=render_artifact(parcelables),
            )

        if cancel_token is not None and cancel_token.cancelled:
            logger.info("Cancelled before writing %s", project_root)
            return invocation.finish(GenerationStatus.CANCELLED, parcelables=parcelables)

        invocation.advance(RunState.WRITING)
        writer = ArtifactWriter(self.workspace or self._workspace_for(config))
        try:
            target = writer.write(project_root, parcelables)
        except AidlPrepError as exc:
            return invocation.fail(exc, parcelables)

        warnings: List[str] = []
        if target is not None:
            warning = writer.notify(target)
            if warning:
                warnings.append(warning)

        return invocation.finish(
            GenerationStatus.WRITTEN,
            parcelables=parcelables,
            artifact=target,
            warnings=warnings,
        )

    def run_many(
        self,
        paths: Iterable[str | Path],
        *,
        max_workers: int | None = None,
        cancel_token: CancellationToken | None = None,
        dry_run: bool = False,
    ) -> List[GenerationResult]:
        """Run independent invocations concurrently; results follow the order of ``paths``."""
        targets = list(paths)
        if not targets:
            return []
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="aidlprep") as pool:
            futures = [
                pool.submit(self.run, target, cancel_token=cancel_token, dry_run=dry_run)
                for target in targets
            ]
            return [future.result() for future in futures]

    def _scan(
        self,
        model: SourceModel,
        marker_interface: str,
        cancel_token: CancellationToken | None,
    ) -> List[str]:
        scanner = Scanner(model)
        classifier = Classifier(model, marker_interface)
        parcelables: List[str] = []
        for declaration in scanner.iter_types(cancel_token):
            if cancel_token is not None and cancel_token.cancelled:
                raise ScanCancelled(f"Scan cancelled at {declaration.fqname}")
            parcelables.extend(classifier.classify(declaration))
        return parcelables

    def _load_config(self, project_root: Path) -> AidlPrepConfig:
        config = load_config(project_root)
        if self.marker_interface:
            config = dataclasses.replace(config, marker_interface=self.marker_interface)
        return config

    @staticmethod
    def _check_project(project_root: Path) -> None:
        if not project_root.exists():
            raise FileNotFoundError(f"Project path not found: {project_root}")
        if not project_root.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {project_root}")

    @staticmethod
    def _workspace_for(config: AidlPrepConfig) -> Workspace:
        if config.workspace.refresh_command:
            return CommandWorkspace(config.workspace.refresh_command)
        return NullWorkspace()


def generate(path: str | Path, **kwargs: object) -> GenerationResult:
    """Convenience wrapper running a default generator once."""
    return ParcelableIndexGenerator().run(path, **kwargs)  # type: ignore[arg-type]


def generate_many(
    paths: Iterable[str | Path], *, max_workers: int | None = None, **kwargs: object
) -> List[GenerationResult]:
    """Convenience wrapper running a default generator over several projects."""
    return ParcelableIndexGenerator().run_many(paths, max_workers=max_workers, **kwargs)  # type: ignore[arg-type]


__all__ = ["ParcelableIndexGenerator", "generate", "generate_many"]
