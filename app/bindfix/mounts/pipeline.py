"""Overlay pipeline orchestration.

Runs enumerate -> classify -> probe -> decide -> apply once per startup.
Every failure is downgraded to leaving the affected mount alone; nothing
raised here reaches the container startup sequence.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from bindfix.core.config import BindfixConfig, OverlayMode
from bindfix.mounts.classifier import classify
from bindfix.mounts.enumerator import MountEnumerator, MountTableUnavailableError
from bindfix.mounts.models import (
    Classification,
    MountPlan,
    MountPoint,
    OverlayDecision,
    OverlayResult,
    ProbeOutcome,
    Verdict,
)
from bindfix.mounts.overlay import OverlayApplier
from bindfix.mounts.prober import PermissionProber
from bindfix.mounts.skiplist import SkipList

logger = logging.getLogger(__name__)

Classifier = Callable[[str], Verdict]
Probe = Callable[[MountPoint], ProbeOutcome | None]


@dataclass(slots=True)
class OverlayReport:
    """Outcome of one pipeline run.

    Attributes:
        plans: Decision for every enumerated mount, in enumeration order.
        results: Result of every attempted overlay mount.
        warnings: Environment-level problems, one entry each.
    """

    plans: list[MountPlan] = field(default_factory=list)
    results: list[OverlayResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def applied(self) -> list[OverlayResult]:
        """Results of overlays that were mounted."""
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[OverlayResult]:
        """Results of overlays that could not be mounted."""
        return [r for r in self.results if not r.success]


def build_skip_list(config: BindfixConfig) -> SkipList:
    """Build the skip list, resolving relative entries against the workspace."""
    return SkipList(config.skip_paths, base=str(config.workspace_root))


def decide(
    mount: MountPoint,
    config: BindfixConfig,
    skip_list: SkipList,
    *,
    classifier: Classifier = classify,
    probe: Probe | None = None,
) -> MountPlan:
    """Decide what the overlay stage does with one mount.

    Checks run in a fixed order so that the cheap, configuration-driven
    outcomes never trigger a probe write:

    1. mode "false" -> skip by configuration
    2. already FUSE-backed -> skip
    3. skip-list match -> skip by list
    4. mode "true" -> apply
    5. mode "auto" -> classify, probing only unknown filesystem types

    Args:
        mount: Mount to decide on.
        config: Process configuration.
        skip_list: Paths excluded from overlays.
        classifier: Filesystem type classifier.
        probe: Permission probe, called only for probe-required verdicts.
            Defaults to a PermissionProber.

    Returns:
        MountPlan with the decision and, in auto mode, the classification.
    """
    if config.mode == OverlayMode.NEVER:
        return MountPlan(mount=mount, decision=OverlayDecision.SKIP_BY_CONFIGURATION)

    if mount.already_fuse:
        return MountPlan(mount=mount, decision=OverlayDecision.SKIP_ALREADY_FUSE)

    if skip_list.matches(mount.path):
        logger.info("Skipping %s (in skip list)", mount.path)
        return MountPlan(mount=mount, decision=OverlayDecision.SKIP_BY_LIST)

    if config.mode == OverlayMode.ALWAYS:
        return MountPlan(mount=mount, decision=OverlayDecision.APPLY)

    verdict = classifier(mount.fstype)
    if verdict == Verdict.PROBE_REQUIRED:
        run_probe = probe or PermissionProber().probe
        classification = Classification(verdict=verdict, probe_outcome=run_probe(mount))
    else:
        classification = Classification(verdict=verdict)

    decision = (
        OverlayDecision.APPLY
        if classification.needs_overlay
        else OverlayDecision.SKIP_ALREADY_CORRECT
    )
    return MountPlan(mount=mount, decision=decision, classification=classification)


def plan_overlays(
    config: BindfixConfig,
    *,
    enumerator: MountEnumerator | None = None,
    classifier: Classifier = classify,
    probe: Probe | None = None,
) -> tuple[list[MountPlan], list[str]]:
    """Enumerate workspace mounts and decide on each one.

    Args:
        config: Process configuration.
        enumerator: Mount enumerator. Defaults to one for the workspace root.
        classifier: Filesystem type classifier.
        probe: Permission probe for probe-required mounts.

    Returns:
        Tuple of (plans, warnings). A missing mount table tool yields no
        plans and one warning, or no warning when mode is "false".
    """
    mount_enumerator = enumerator or MountEnumerator(config.workspace_root)
    try:
        mounts = mount_enumerator.enumerate()
    except MountTableUnavailableError as e:
        if config.mode == OverlayMode.NEVER:
            logger.debug("Cannot enumerate workspace mounts: %s", e)
            return [], []
        logger.warning("Cannot enumerate workspace mounts: %s", e)
        return [], [str(e)]

    skip_list = build_skip_list(config)
    plans = [
        decide(mount, config, skip_list, classifier=classifier, probe=probe) for mount in mounts
    ]
    return plans, []


def run_overlay_pipeline(
    config: BindfixConfig,
    *,
    enumerator: MountEnumerator | None = None,
    applier: OverlayApplier | None = None,
    classifier: Classifier = classify,
    probe: Probe | None = None,
    dry_run: bool = False,
) -> OverlayReport:
    """Run the overlay stage once.

    With mode "false" every mount is reported as skipped by configuration
    and nothing is probed, checked or mounted.

    Args:
        config: Process configuration.
        enumerator: Mount enumerator. Defaults to one for the workspace root.
        applier: Overlay applier. Defaults to an OverlayApplier for config.
        classifier: Filesystem type classifier.
        probe: Permission probe for probe-required mounts.
        dry_run: If True, decide but do not mount anything.

    Returns:
        OverlayReport with plans, results and environment warnings.
    """
    report = OverlayReport()

    report.plans, warnings = plan_overlays(
        config, enumerator=enumerator, classifier=classifier, probe=probe
    )

    if config.mode == OverlayMode.NEVER:
        logger.info("Overlay stage disabled (mode=false)")
        return report

    report.warnings = warnings

    to_apply = [plan for plan in report.plans if plan.should_apply]
    if not to_apply:
        return report

    overlay = applier or OverlayApplier(config, dry_run=dry_run)
    if not overlay.dry_run:
        reason = overlay.check_environment()
        if reason is not None:
            logger.warning("Cannot apply overlays: %s", reason)
            report.warnings.append(reason)
            report.results = [
                OverlayResult(path=plan.mount.path, success=False, error=reason)
                for plan in to_apply
            ]
            return report

    report.results = overlay.apply_all(to_apply)
    return report
