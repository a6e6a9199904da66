from django.apps import AppConfig


class DriversConfig(AppConfig):
    name = "modules.drivers"
    label = "drivers"
