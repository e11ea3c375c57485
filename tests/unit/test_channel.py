"""Tests for Channel."""

import asyncio

import pytest

from leadsdb.errors import OperationCancelled
from leadsdb.streaming import CancelToken, Channel, ChannelClosed


class TestChannel:
    """Tests for Channel."""

    def test_minimum_capacity(self) -> None:
        """Test capacity is at least one."""
        assert Channel(0).capacity == 1
        assert Channel(5).capacity == 5

    def test_close_once(self) -> None:
        """Test close returns True only the first time."""
        channel: Channel[int] = Channel()
        assert channel.close() is True
        assert channel.close() is False
        assert channel.closed

    @pytest.mark.asyncio
    async def test_order_preserved(self) -> None:
        """Test items are received in send order."""
        channel: Channel[int] = Channel(3)

        async def produce() -> None:
            for i in range(10):
                await channel.send(i)
            channel.close()

        task = asyncio.create_task(produce())
        received = [item async for item in channel]
        await task

        assert received == list(range(10))

    @pytest.mark.asyncio
    async def test_buffered_items_survive_close(self) -> None:
        """Test closing keeps buffered items receivable."""
        channel: Channel[str] = Channel(2)
        await channel.send("a")
        await channel.send("b")
        channel.close()

        assert await channel.receive() == "a"
        assert await channel.receive() == "b"
        with pytest.raises(ChannelClosed):
            await channel.receive()

    @pytest.mark.asyncio
    async def test_send_on_closed_raises(self) -> None:
        """Test sending to a closed channel fails."""
        channel: Channel[int] = Channel()
        channel.close()
        with pytest.raises(ChannelClosed):
            await channel.send(1)

    @pytest.mark.asyncio
    async def test_close_releases_blocked_sender(self) -> None:
        """Test a sender blocked on a full channel is released by close."""
        channel: Channel[int] = Channel(1)
        await channel.send(1)

        sender = asyncio.create_task(channel.send(2))
        await asyncio.sleep(0.01)
        assert not sender.done()

        channel.close()
        with pytest.raises(ChannelClosed):
            await sender

    @pytest.mark.asyncio
    async def test_close_releases_blocked_receiver(self) -> None:
        """Test a waiting receiver ends when the channel closes."""
        channel: Channel[int] = Channel()
        receiver = asyncio.create_task(channel.receive())
        await asyncio.sleep(0.01)

        channel.close()
        with pytest.raises(ChannelClosed):
            await receiver

    @pytest.mark.asyncio
    async def test_send_cancelled_by_token(self) -> None:
        """Test a blocked send yields to the token."""
        channel: Channel[int] = Channel(1)
        await channel.send(1)
        token = CancelToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)

        with pytest.raises(OperationCancelled):
            await asyncio.wait_for(channel.send(2, token), timeout=1.0)
        assert channel.qsize() == 1

    @pytest.mark.asyncio
    async def test_receive_cancelled_by_token(self) -> None:
        """Test a blocked receive yields to the token."""
        channel: Channel[int] = Channel()
        token = CancelToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)

        with pytest.raises(OperationCancelled):
            await asyncio.wait_for(channel.receive(token), timeout=1.0)
