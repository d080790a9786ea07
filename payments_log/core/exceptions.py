class EventValidationError(Exception):
    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("; ".join(problems))


class EventReadError(Exception):
    pass


class OrderSourceError(Exception):
    pass


class UnknownHookError(Exception):
    def __init__(self, hook_name: str):
        self.hook_name = hook_name
        super().__init__(f"Unknown hook: {hook_name}")
