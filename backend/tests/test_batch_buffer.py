from telemetry.buffer import BatchBuffer


class TestBatchBuffer:
    def setup_method(self):
        self.buffer = BatchBuffer(batch_size=4, min_batch_size=2)

    def test_append_signals_size_trigger(self):
        assert not self.buffer.append("a")
        assert not self.buffer.append("b")
        assert not self.buffer.append("c")
        assert self.buffer.append("d")
        assert len(self.buffer) == 4

    def test_take_below_minimum_waits(self):
        self.buffer.append("a")
        assert self.buffer.take() == []
        assert len(self.buffer) == 1

    def test_forced_take_ignores_minimum(self):
        self.buffer.append("a")
        assert self.buffer.take(force=True) == ["a"]
        assert len(self.buffer) == 0

    def test_take_empty(self):
        assert self.buffer.take(force=True) == []

    def test_take_swaps_queue_out(self):
        for item in "abc":
            self.buffer.append(item)
        batch = self.buffer.take()
        self.buffer.append("d")
        assert batch == ["a", "b", "c"]
        assert self.buffer.peek() == ["d"]

    def test_requeue_goes_in_front(self):
        for item in "ab":
            self.buffer.append(item)
        failed = self.buffer.take()
        self.buffer.append("c")
        self.buffer.requeue(failed)
        assert self.buffer.peek() == ["a", "b", "c"]

    def test_drain_takes_everything(self):
        self.buffer.append("a")
        assert self.buffer.drain() == ["a"]
        assert self.buffer.drain() == []
