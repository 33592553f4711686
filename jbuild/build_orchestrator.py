#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ****************************************************************************************************************************************************
# * BSD 3-Clause License
# *
# * Copyright (c) 2025, Mana Battery
# * All rights reserved.
# *
# * Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
# *
# * 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
# * 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
# *    documentation and/or other materials provided with the distribution.
# * 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
# *    software without specific prior written permission.
# *
# * THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
# * THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
# * CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
# * PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# * LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# * EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
# ****************************************************************************************************************************************************
"""Incremental build orchestration.

A build resolves the dependency graph from an entry file, orders it, diffs it
against the persisted cache and hands the changed set to the external
compiler in a single batched invocation. Cache state only advances when that
invocation succeeds, so a failed build is retried with the identical changed
set next time.
"""

import os
import logging
from typing import Callable, Dict, List, Optional, Tuple
from dataclasses import dataclass, field

from jbuild.cache_utils import CacheEntry, CacheSnapshot, InvalidationPolicy, compute_changed_set, load_cache, save_cache
from jbuild.config_utils import JBuildConfig
from jbuild.constants import ARTIFACT_EXTENSION, CompilationError, EntryFileError, RuntimeFailureError
from jbuild.dependency_graph import DependencyGraph, build_dependency_graph
from jbuild.graph_types import BuildPlan, SourceFile
from jbuild.toolchain import ProcessResult, run_compiler, run_runtime
from jbuild.topo_order import compute_build_order
from jbuild.tree_view import render_dependency_tree

logger = logging.getLogger(__name__)


@dataclass
class BuildOptions:
    """Per-invocation build options.

    Attributes:
        force: Recompile the whole plan regardless of cache state
        verbose: Log the compile or skip reason of every planned file
        auto_include: Promote implicit references (None = use the configuration)
        policy: Invalidation policy (None = use the configuration)
        program_args: Arguments passed to the program by run()
    """

    force: bool = False
    verbose: bool = False
    auto_include: Optional[bool] = None
    policy: Optional[InvalidationPolicy] = None
    program_args: List[str] = field(default_factory=list)


@dataclass
class BuildResult:
    """Outcome of a successful build.

    Attributes:
        entry: Key of the entry file
        graph: Dependency graph the build used
        plan: Build plan with the compiled subset
        compiler: Compiler invocation, None when nothing needed compiling
        cache_saved: Whether the updated cache was persisted
    """

    entry: str
    graph: DependencyGraph
    plan: BuildPlan
    compiler: Optional[ProcessResult] = None
    cache_saved: bool = True

    @property
    def compiled(self) -> List[str]:
        """Files compiled by this build, in plan order."""
        return list(self.plan.to_compile)

    @property
    def skipped(self) -> List[str]:
        """Files reused from the cache."""
        return self.plan.skipped

    @property
    def reasons(self) -> Dict[str, str]:
        """Why each compiled file was selected."""
        return self.plan.reasons

    @property
    def up_to_date(self) -> bool:
        """True if nothing needed compiling."""
        return not self.plan.to_compile


@dataclass
class RunResult:
    """Outcome of building and running a program.

    Attributes:
        build: The build that preceded the run
        entry_symbol: Symbol the runtime was invoked with
        process: Runtime invocation
    """

    build: BuildResult
    entry_symbol: str
    process: ProcessResult

    @property
    def succeeded(self) -> bool:
        """True if the program exited with status 0."""
        return self.process.succeeded

    def check(self) -> "RunResult":
        """Raise RuntimeFailureError if the program failed; the build stays cached."""
        if not self.succeeded:
            raise RuntimeFailureError(self.process.returncode, self.process.stderr)
        return self


def resolve_entry_file(name: str, config: JBuildConfig) -> str:
    """Locate the entry file: as given first, then under the source root.

    Args:
        name: Entry file as given by the user
        config: Project configuration

    Returns:
        Path to the entry file

    Raises:
        EntryFileError: If neither location holds a file
    """
    if os.path.isfile(name):
        return name

    candidate = os.path.join(config.source_root, name)
    if os.path.isfile(candidate):
        return candidate

    raise EntryFileError(f"File not found: {name}")


def artifact_path_for(source: SourceFile, out_dir: str) -> str:
    """Path of the artifact the compiler produces for a source file.

    Args:
        source: Source file
        out_dir: Compiler output directory

    Returns:
        out_dir/<package dirs>/<Type>.class
    """
    parts = source.package.split(".") if source.package else []
    return os.path.join(out_dir, *parts, source.primary_type + ARTIFACT_EXTENSION)


class BuildOrchestrator:
    """Drives builds, runs and tree views for one project configuration.

    Args:
        config: Project configuration
        on_plan: Called with the plan before the compiler is invoked
    """

    def __init__(self, config: JBuildConfig, on_plan: Optional[Callable[[BuildPlan], None]] = None):
        self.config = config
        self.on_plan = on_plan

    def _auto_include(self, options: BuildOptions) -> bool:
        return self.config.auto_include_implicit_deps if options.auto_include is None else options.auto_include

    def load_graph(self, entry: str, auto_include: Optional[bool] = None) -> DependencyGraph:
        """Resolve and validate the dependency graph of an entry file.

        Raises:
            EntryFileError: If the entry file does not exist
            MissingDependencyError: If a declared dependency does not exist
            CircularDependencyError: If declared dependencies form a cycle
        """
        entry_path = resolve_entry_file(entry, self.config)
        include = self.config.auto_include_implicit_deps if auto_include is None else auto_include
        return build_dependency_graph(
            entry_path,
            self.config.source_root,
            auto_include=include,
            keyword=self.config.annotation_keyword,
            extension=self.config.source_extension,
        )

    def prepare(self, entry: str, options: Optional[BuildOptions] = None) -> Tuple[DependencyGraph, BuildPlan, CacheSnapshot]:
        """Resolve the graph, order it and compute the changed set.

        Args:
            entry: Entry file
            options: Build options

        Returns:
            Tuple of (graph, plan, cache snapshot the plan was computed against)
        """
        options = options or BuildOptions()
        graph = self.load_graph(entry, self._auto_include(options))
        order = compute_build_order(graph)

        snapshot = load_cache(self.config.cache_file)
        policy = options.policy or self.config.invalidation
        sources: Dict[str, SourceFile] = {key: graph.source(key) for key in order}
        to_compile, reasons = compute_changed_set(order, sources, snapshot, force=options.force, policy=policy, dependents_of=graph.transitive_dependents)

        return graph, BuildPlan(order=order, to_compile=to_compile, reasons=reasons), snapshot

    def plan(self, entry: str, options: Optional[BuildOptions] = None) -> BuildPlan:
        """Compute the build plan without compiling anything."""
        _, plan, _ = self.prepare(entry, options)
        return plan

    def build(self, entry: str, options: Optional[BuildOptions] = None) -> BuildResult:
        """Build an entry file and everything it depends on.

        Args:
            entry: Entry file
            options: Build options

        Returns:
            BuildResult

        Raises:
            JBuildError subclasses: graph errors before any compilation,
                CompilationError when the compiler fails (cache untouched)
        """
        options = options or BuildOptions()
        graph, plan, snapshot = self.prepare(entry, options)

        level = logging.INFO if options.verbose else logging.DEBUG
        for key in plan.order:
            logger.log(level, "%s: %s", key, plan.reasons.get(key, "up to date"))

        if self.on_plan is not None:
            self.on_plan(plan)

        if not plan.to_compile:
            logger.debug("Everything up to date (%s files)", len(plan.order))
            return BuildResult(entry=graph.entry, graph=graph, plan=plan)

        os.makedirs(self.config.out_dir, exist_ok=True)
        compile_sources = [graph.source(key) for key in plan.to_compile]
        process = run_compiler(self.config.compiler, [source.path for source in compile_sources], self.config.out_dir, self.config.compiler_options)

        if not process.succeeded:
            logger.debug("Compiler exited with %s; cache left unchanged", process.returncode)
            raise CompilationError(process.returncode, process.diagnostics, process.command)

        updates = {source.key: CacheEntry(hash=source.content_hash, artifact=artifact_path_for(source, self.config.out_dir)) for source in compile_sources}
        saved = save_cache(self.config.cache_file, snapshot.with_entries(updates))

        logger.debug("Compiled %s, skipped %s", len(plan.to_compile), len(plan.skipped))
        return BuildResult(entry=graph.entry, graph=graph, plan=plan, compiler=process, cache_saved=saved)

    def run(self, entry: str, options: Optional[BuildOptions] = None) -> RunResult:
        """Build an entry file, then run it.

        A failing program is reported through the returned RunResult, not
        raised: the build has already completed and been cached.

        Args:
            entry: Entry file
            options: Build options (program_args are passed to the program)

        Returns:
            RunResult
        """
        options = options or BuildOptions()
        build_result = self.build(entry, options)
        source = build_result.graph.source(build_result.entry)
        symbol = source.entry_symbol

        logger.debug("Running %s", symbol)
        process = run_runtime(self.config.runtime, self.config.out_dir, symbol, self.config.runtime_options, options.program_args)
        return RunResult(build=build_result, entry_symbol=symbol, process=process)

    def tree(self, entry: str, auto_include: Optional[bool] = None) -> List[str]:
        """Render the dependency tree of an entry file."""
        graph = self.load_graph(entry, auto_include)
        return render_dependency_tree(graph)


def build(entry: str, config: JBuildConfig, options: Optional[BuildOptions] = None) -> BuildResult:
    """Build an entry file with the given configuration."""
    return BuildOrchestrator(config).build(entry, options)


def run(entry: str, config: JBuildConfig, options: Optional[BuildOptions] = None) -> RunResult:
    """Build and run an entry file with the given configuration."""
    return BuildOrchestrator(config).run(entry, options)
