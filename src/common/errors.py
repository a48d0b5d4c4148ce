class InternalError(Exception):
    """Raised when the interpreter itself reaches a state it should never be in.

    User-level mistakes never surface as this; they are parse error messages or
    runtime Error values.
    """

    def __init__(self, component: str, msg: str):
        super().__init__(f"internal error: {component}: {msg}")
        self.component = component
