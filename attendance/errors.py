class AttendanceError(Exception):
    code = "attendance_error"
    message = "Attendance could not be recorded"
    status_code = 400

    def __init__(self, message=None, **details):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def as_dict(self):
        payload = {"error": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class TokenNotFound(AttendanceError):
    code = "token_not_found"
    message = "Invalid check-in code"
    status_code = 404


class TokenExpired(AttendanceError):
    code = "token_expired"
    message = "This check-in code has expired"
    status_code = 410


class TokenInvalidated(AttendanceError):
    code = "token_invalidated"
    message = "Check-in for this session has been closed"
    status_code = 410


class SessionMismatch(AttendanceError):
    code = "session_mismatch"
    message = "This check-in code belongs to a different session or date"


class OutOfProximityRange(AttendanceError):
    code = "out_of_range"
    message = "You are too far from the session location to check in"
    status_code = 403


class LocationRequired(AttendanceError):
    code = "location_required"
    message = "Location is required to check in for this session"


class CheckInNotOpen(AttendanceError):
    code = "check_in_not_open"
    message = "Check-in is not open for this session yet"
    status_code = 409


class NotEnrolled(AttendanceError):
    code = "not_enrolled"
    message = "You are not enrolled in this session"
    status_code = 403


class DuplicateAttendance(AttendanceError):
    code = "already_checked_in"
    message = "Attendance has already been recorded for this date"
    status_code = 409


class InsufficientData(AttendanceError):
    code = "insufficient_data"
    message = "Not enough attendance data to compute a score"
    status_code = 422


class InvalidExcuseReason(AttendanceError):
    code = "invalid_excuse_reason"
    message = "An excuse reason is required for excused attendance"


class InvalidScoringConfig(AttendanceError):
    code = "invalid_scoring_config"
    message = "Scoring configuration is invalid"
