"""
Asset executors.

Import concrete executors from their modules, e.g.
``from tetraspore.executors.image import ImageAssetExecutor``; the
registry in ``tetraspore.executors.registry`` wires the defaults together.
"""
