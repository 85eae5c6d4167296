"""Capability-gated component editing: registry, context, finalizer, apply and panel.

Import submodules directly (``xmdedit.edit.finalizer`` and so on); the panel
depends on :mod:`xmdedit.pipelines`, which in turn depends on this package.
"""
