"""Journey and suite file loading."""
from journeyqa.src.loader.journey_loader import JourneyLoadError, load_journey
from journeyqa.src.loader.suite_loader import SuiteLoadError, load_suite

__all__ = ["JourneyLoadError", "SuiteLoadError", "load_journey", "load_suite"]
