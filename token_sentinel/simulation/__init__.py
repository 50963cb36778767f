from .profiles import PROFILES, MarketConditions, SimulationProfile, default_profile, get_profile
from .response_simulator import ResponseSimulator
from .simulation_service import SimulationService, calculate_consensus

__all__ = [
    "PROFILES",
    "MarketConditions",
    "ResponseSimulator",
    "SimulationProfile",
    "SimulationService",
    "calculate_consensus",
    "default_profile",
    "get_profile",
]
