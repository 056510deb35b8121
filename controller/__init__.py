from .scheduler import ManualScheduler, QtScheduler, Scheduler
from .simulation_controller import IntentResult, SimulationController
