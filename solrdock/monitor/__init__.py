"""Terminal rendering for run summaries, test reports and task history."""

from solrdock.monitor.renderer import RunRenderer

__all__ = ["RunRenderer"]
