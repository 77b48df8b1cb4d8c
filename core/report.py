import logging

from report_components.base_component import ReportComponent
from typing import Dict, Any

logger = logging.getLogger(__name__)


class Report:
    """
    Report orchestrator that runs analysis components and collects results.

    After running, component summaries are stored in the shared context so
    later components and the caller can read them.
    """

    def __init__(self):
        self.components = []

    def add_component(self, component: ReportComponent):
        self.components.append(component)

    def run(self):
        """Run all components in order and store their summaries in context."""
        for component in self.components:
            self.run_component(component)

    @staticmethod
    def run_component(component: ReportComponent) -> Dict[str, Any]:
        name = component.__class__.__name__
        logger.debug("Running component: %s", name)
        component.analyze()
        summary = component.summarize()
        component.context.store_component_result(name, summary)
        return summary

    def get_all_summaries(self) -> Dict[str, Any]:
        """Summaries of every component that has been analyzed."""
        return {
            component.__class__.__name__: component.summarize()
            for component in self.components
            if component.result is not None
        }
