"""Journey and suite execution."""
from journeyqa.src.engine.executor import JourneyExecutor, execute_journey, parse_pause_step
from journeyqa.src.engine.suite_runner import SuiteRunner

__all__ = ["JourneyExecutor", "SuiteRunner", "execute_journey", "parse_pause_step"]
