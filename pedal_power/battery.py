class Battery:
    """Unit-less energy accumulator. Energy is allowed to go negative."""

    def __init__(self, initial_energy: float = 0.0):
        self.energy = initial_energy

    def feed(self, amount: float) -> None:
        self.energy += amount

    def consume(self, amount: float) -> None:
        self.energy -= amount

    def total(self) -> float:
        return self.energy
