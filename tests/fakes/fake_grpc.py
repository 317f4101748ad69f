# SPDX-License-Identifier: LGPL-3.0-or-later
class AbortCalled(Exception):
    pass


class FakeServicerContext:
    """Just enough of grpc.ServicerContext for unary handlers."""

    def __init__(self):
        self.code = None
        self.details = None

    def abort(self, code, details):
        self.code = code
        self.details = details
        raise AbortCalled(details)
