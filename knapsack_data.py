import os
from typing import NamedTuple

import numpy as np


class Item(NamedTuple):
    """A knapsack item. `id` doubles as its index in the pheromone vector."""
    id: int
    weight: int
    value: int


class Knapsack:
    """
    Tracks the weight used by one ant against a fixed capacity.
    add() does not re-check the capacity: callers must ask can_add() first.
    """

    def __init__(self, capacity):
        self.capacity = capacity
        self.used_weight = 0

    def can_add(self, item):
        return item.weight <= self.remaining

    def fits(self, weights):
        """Vectorized can_add(): boolean mask of the weights that still fit."""
        return weights <= self.remaining

    def add(self, item):
        self.used_weight += item.weight

    @property
    def remaining(self):
        return self.capacity - self.used_weight


class InstanceFormatError(ValueError):
    """Raised when a problem file does not follow the expected layout."""


class KnapsackInstance:
    def __init__(self, items, capacity, name=""):
        self.name = name
        self.items = list(items)
        self.capacity = capacity

    @classmethod
    def from_file(cls, filepath):
        """
        Parses a knapsack text file:
        - first line: integer capacity
        - every further non-blank line: "weight value"
        Item ids are assigned from 0 in file order.
        """
        with open(filepath, 'r') as f:
            lines = f.readlines()

        name = os.path.splitext(os.path.basename(filepath))[0]
        return cls.from_lines(lines, name=name)

    @classmethod
    def from_lines(cls, lines, name=""):
        lines = list(lines)
        if not lines or not lines[0].strip():
            raise InstanceFormatError("Line 1: missing capacity")

        try:
            capacity = int(lines[0].strip())
        except ValueError:
            raise InstanceFormatError(f"Line 1: capacity is not an integer: {lines[0].strip()!r}")
        if capacity <= 0:
            raise InstanceFormatError(f"Line 1: capacity must be positive, got {capacity}")

        items = []
        for line_no, line in enumerate(lines[1:], start=2):
            parts = line.strip().split()
            if not parts:
                continue
            if len(parts) != 2:
                raise InstanceFormatError(f"Line {line_no}: expected 'weight value', got {line.strip()!r}")
            try:
                weight, value = int(parts[0]), int(parts[1])
            except ValueError:
                raise InstanceFormatError(f"Line {line_no}: weight and value must be integers")
            if weight <= 0:
                raise InstanceFormatError(f"Line {line_no}: weight must be positive, got {weight}")
            if value < 0:
                raise InstanceFormatError(f"Line {line_no}: value must be non-negative, got {value}")
            items.append(Item(len(items), weight, value))

        return cls(items, capacity, name=name)

    @property
    def n_items(self):
        return len(self.items)

    @property
    def total_weight(self):
        return sum(item.weight for item in self.items)

    def get_data(self):
        """Returns the essential data structures for the Solver."""
        weights = np.array([item.weight for item in self.items], dtype=np.int64)
        values = np.array([item.value for item in self.items], dtype=np.int64)
        return weights, values, self.capacity
