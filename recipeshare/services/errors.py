class ServiceError(Exception):
    pass


class MalformedModelResponseError(ServiceError):
    def __init__(self, reason: str, raw_text: str = ""):
        super().__init__(f"Malformed model response: {reason}")
        self.reason = reason
        self.raw_text = raw_text
