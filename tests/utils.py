class FakeConnection:
    """Заглушка WebSocket: копит отправленные события."""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    async def send_json(self, data, mode='text'):
        if self.fail:
            raise RuntimeError('connection closed')
        self.sent.append(data)
