from importlib import import_module

modules = [
    'auth',
    'departments',
    'trials',
    'stages',
    'master_list',
    'department_progress',
    'audit',
]

for m in modules:
    import_module(f'.{m}', __name__)

__all__ = modules
