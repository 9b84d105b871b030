# expense_tracker/outputs/__init__.py
from importlib import import_module

from expense_tracker.errors import InvalidInput


def get_output(name, config):
    modules = config['output_modules']
    if name not in modules:
        raise InvalidInput(f"Unknown export format '{name}'.")
    module_name, cls_name = modules[name].rsplit('.', 1)
    mod = import_module(module_name)
    return getattr(mod, cls_name)(config)
