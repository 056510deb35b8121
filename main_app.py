"""
BB84 Simulator — Console Entry Point
====================================
Runs one eight-qubit BB84 session on the Qt event loop and prints the
controller's status log:

    python main_app.py [--eve]
"""
import sys
import os

# Ensure the project root is on the Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from PyQt6.QtCore import QCoreApplication

from controller.simulation_controller import SimulationController


def main() -> None:
    app = QCoreApplication(sys.argv)
    app.setApplicationName("BB84 Simulator")

    controller = SimulationController(eavesdropper_enabled="--eve" in sys.argv[1:])
    controller.log_message.connect(print)
    controller.session_complete.connect(lambda _stats: app.quit())
    app.aboutToQuit.connect(controller.shutdown)

    controller.start()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
