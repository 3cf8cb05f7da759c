from apps import api

from apps.api.main import (app, base_root, health, health_check, root,
                           router, startup_event,)

__all__ = ['api', 'app', 'base_root', 'health', 'health_check', 'root',
           'router', 'startup_event']
