"""Packaging strategies, from most to least integrated."""

from portapack.strategies.base import BuildContext, BuildStrategy
from portapack.strategies.basic import BasicStrategy
from portapack.strategies.bundle import BundleStrategy
from portapack.strategies.pack import PackStrategy


def default_strategies() -> tuple[BuildStrategy, ...]:
    return (BundleStrategy(), PackStrategy(), BasicStrategy())


__all__ = [
    "BasicStrategy",
    "BuildContext",
    "BuildStrategy",
    "BundleStrategy",
    "PackStrategy",
    "default_strategies",
]
