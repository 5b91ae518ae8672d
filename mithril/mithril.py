from multiprocess import Pool
from typing import Callable, List

from mithril.metrics import Metrics
from mithril.simulation import Simulation


def run_simulation(simulation: Simulation) -> Metrics:
    return simulation.run()


class Mithril:

    def __init__(
        self,
        simulation_factory: Callable[[], Simulation],
        simulations_number: int,
        processes: int = 12,
    ):
        self.processes = processes
        self.simulation_factory = simulation_factory
        self.simulations_number = simulations_number

    def run(self) -> List[Metrics]:
        simulations = [self.simulation_factory() for _ in range(self.simulations_number)]
        if self.simulations_number == 1:
            return [run_simulation(simulations[0])]

        with Pool(min(self.processes, self.simulations_number)) as pool:
            return pool.map(run_simulation, simulations)
