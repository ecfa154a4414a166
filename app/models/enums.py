from enum import Enum

class AttendanceStatus(str, Enum):
    Present = "present"
    Absent = "absent"
    Late = "late"
    OnDuty = "onduty"

class TriggerType(str, Enum):
    Normal = "normal"
    Alert = "alert"
    Urgent = "urgent"
    Warning = "warning"

# Trigger types that put the asking client into a temporary lock
ALERT_TRIGGER_TYPES = {TriggerType.Alert, TriggerType.Urgent, TriggerType.Warning}
