"""
Console input handling: transcript text, exit word, errors that keep the session alive.
"""

import asyncio

import pytest
from prompt_toolkit.application import create_app_session
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

from rcon_console.rcon import Rcon
from rcon_console.rcon_ui import format_reply, run_line, run_rcon_ui


@pytest.fixture
def rcon(factory):
	return Rcon('127.0.0.1', 25575, 'pw', socket_factory=factory)


class TestFormatReply:
	def test_reply_gets_trailing_blank_line(self):
		assert format_reply('list', 'There are 0 players') == 'RCON> list\nThere are 0 players\n\n'

	def test_empty_reply(self):
		assert format_reply('save-all', '') == 'RCON> save-all\n\n'


class TestRunLine:
	def test_command_reply(self, rcon):
		assert asyncio.run(run_line(rcon, 'list')) == 'RCON> list\necho:list\n\n'

	def test_blank_line_sends_nothing(self, rcon, factory):
		assert asyncio.run(run_line(rcon, '')) == ''
		assert len(factory.last.writes) == 1

	@pytest.mark.parametrize('line', ['exit', '  exit  '])
	def test_exit_word(self, rcon, factory, line):
		assert asyncio.run(run_line(rcon, line)) is None
		assert len(factory.last.writes) == 1

	def test_error_is_shown_and_session_continues(self, rcon):
		text = asyncio.run(run_line(rcon, 'x' * 2000))
		assert text.startswith('RCON> ')
		assert '[rcon error] Payload too long' in text
		assert asyncio.run(run_line(rcon, 'list')) == 'RCON> list\necho:list\n\n'

	def test_transport_error_is_shown(self, rcon, factory):
		factory.last.recv_error = ConnectionResetError('Connection reset by peer')
		text = asyncio.run(run_line(rcon, 'list'))
		assert '[rcon error] Connection reset by peer' in text


class TestFullscreen:
	def test_exit_word_leaves_the_application(self, rcon, factory):
		async def run():
			await asyncio.wait_for(run_rcon_ui(rcon, '127.0.0.1:25575'), timeout=5)

		with create_pipe_input() as inp:
			inp.send_text('exit\r')
			with create_app_session(input=inp, output=DummyOutput()):
				asyncio.run(run())

		# only the auth packet went out
		assert len(factory.last.writes) == 1
