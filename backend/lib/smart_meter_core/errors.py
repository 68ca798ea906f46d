class InvalidReadingsError(ValueError):
    """A readings batch was rejected before reaching the store."""


class UndefinedCostError(ArithmeticError):
    """
    Raised when a reading series spans no time at all (a single reading, or
    every reading at the same instant), so no per-hour cost exists.
    """

    def __init__(self, smart_meter_id=None):
        self.smart_meter_id = smart_meter_id
        if smart_meter_id:
            message = f"readings for {smart_meter_id} span zero elapsed time"
        else:
            message = "readings span zero elapsed time"
        super().__init__(message)
