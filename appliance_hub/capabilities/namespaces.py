"""
Ability namespace identifiers advertised by appliances.

A device reports the namespaces it understands once, at capability
discovery. These constants name the ones the operation registry and the
status aggregator care about.
"""

# Power
TOGGLE = "Appliance.Control.Toggle"
TOGGLEX = "Appliance.Control.ToggleX"

# Light
LIGHT = "Appliance.Control.Light"
DIFFUSER_LIGHT = "Appliance.Control.Diffuser.Light"

# Climate
THERMOSTAT_MODE = "Appliance.Control.Thermostat.Mode"
THERMOSTAT_MODE_B = "Appliance.Control.Thermostat.ModeB"
THERMOSTAT_WINDOW_OPENED = "Appliance.Control.Thermostat.WindowOpened"
THERMOSTAT_OVERHEAT = "Appliance.Control.Thermostat.Overheat"
THERMOSTAT_CALIBRATION = "Appliance.Control.Thermostat.Calibration"
THERMOSTAT_FROST = "Appliance.Control.Thermostat.Frost"
SPRAY = "Appliance.Control.Spray"
DIFFUSER_SPRAY = "Appliance.Control.Diffuser.Spray"

# Covers
GARAGE_DOOR_STATE = "Appliance.GarageDoor.State"
ROLLER_SHUTTER_POSITION = "Appliance.RollerShutter.Position"
ROLLER_SHUTTER_STATE = "Appliance.RollerShutter.State"

# Automation
TIMERX = "Appliance.Control.TimerX"
TRIGGERX = "Appliance.Control.TriggerX"
DIGEST_TIMERX = "Appliance.Digest.TimerX"
DIGEST_TRIGGERX = "Appliance.Digest.TriggerX"

# Metering and sensors
ELECTRICITY = "Appliance.Control.Electricity"
CONSUMPTION = "Appliance.Control.Consumption"
CONSUMPTIONX = "Appliance.Control.ConsumptionX"
CONSUMPTION_CONFIG = "Appliance.Control.ConsumptionConfig"
SENSOR_LATESTX = "Appliance.Control.Sensor.LatestX"

# Configuration
PHYSICAL_LOCK = "Appliance.Control.PhysicalLock"
LED_MODE = "Appliance.System.LedMode"
SCREEN_BRIGHTNESS = "Appliance.Control.Screen.Brightness"
TEMP_UNIT = "Appliance.Control.TempUnit"
DND_MODE = "Appliance.System.DNDMode"
OVER_TEMP = "Appliance.Config.OverTemp"
PRESENCE_CONFIG = "Appliance.Control.Presence.Config"
PRESENCE_STUDY = "Appliance.Control.Presence.Study"

# Never requested automatically: they change device ownership, firmware
# or network settings.
CONTROL_UNBIND = "Appliance.Control.Unbind"
CONTROL_BIND = "Appliance.Control.Bind"
CONTROL_UPGRADE = "Appliance.Control.Upgrade"
CONTROL_CHANGE_WIFI = "Appliance.Control.ChangeWiFi"
HUB_UNBIND = "Appliance.Hub.Unbind"
HUB_BIND = "Appliance.Hub.Bind"

DANGEROUS_NAMESPACES = frozenset({
    CONTROL_UNBIND,
    CONTROL_BIND,
    CONTROL_UPGRADE,
    CONTROL_CHANGE_WIFI,
    HUB_UNBIND,
    HUB_BIND,
})

# Push-only or set-only namespaces that do not answer a status read
NON_READABLE_NAMESPACES = frozenset({
    "Appliance.System.Ability",
    "Appliance.System.Clock",
    "Appliance.System.Report",
    "Appliance.Control.Multiple",
    "Appliance.Control.OverTemp",
    "Appliance.Control.AlertReport",
    "Appliance.Config.Key",
})

NON_READABLE_PREFIXES = ("Appliance.Hub.", "Appliance.Encrypt.")


def is_readable(namespace: str) -> bool:
    """Whether a status read may be issued against this namespace."""
    if namespace in DANGEROUS_NAMESPACES or namespace in NON_READABLE_NAMESPACES:
        return False
    return not namespace.startswith(NON_READABLE_PREFIXES)
