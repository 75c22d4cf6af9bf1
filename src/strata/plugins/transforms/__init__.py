"""Built-in transform plugins.

Each transform receives one record and returns a TransformResult with the
records to emit, or raises a RecordTransformError.

Plugins are accessed via PluginManager, not direct imports:
    manager = PluginManager()
    manager.register_builtin_plugins()
    parser = manager.create_transform("parse_delimited", options)
"""
