"""The pseudo-terminal link between the terminal and the program it runs."""

import errno
import fcntl
import logging
import os
import pty
import pwd
import select
import signal
import struct
import subprocess
import sys
import termios

from simpleterm.screen import TermMode

log = logging.getLogger(__name__)

POSIX_ARG_MAX = 4096
BUFSIZ = 8192
WRITE_LIMIT = 256
DEFAULT_SHELL = "/bin/sh"

_RESET_SIGNALS = (
    signal.SIGCHLD,
    signal.SIGHUP,
    signal.SIGINT,
    signal.SIGQUIT,
    signal.SIGTERM,
    signal.SIGALRM,
)


class TtyError(Exception):
    """The link to the program failed or the program ended badly."""


def stty_command(stty_args, args):
    """Build the stty command line for a serial line.

    Raises ValueError when the command would exceed the argument limit.
    """
    if len(stty_args) > POSIX_ARG_MAX - 1:
        raise ValueError("incorrect stty parameters")
    remaining = POSIX_ARG_MAX - len(stty_args)
    parts = [stty_args]
    for arg in args or ():
        if len(arg) > remaining - 1:
            raise ValueError("stty parameter length too long")
        parts.append(arg)
        remaining -= len(arg) + 1
    return " ".join(parts)


def shell_argv(args, scroll, utmp, shell):
    """Choose the program and arguments to run in the terminal."""
    if args:
        return list(args)
    if scroll:
        return [scroll, utmp or shell]
    if utmp:
        return [utmp]
    return [shell]


def child_environment(base, user, home, shell, termname):
    """Return the environment for the program started in the terminal."""
    env = dict(base)
    for name in ("COLUMNS", "LINES", "TERMCAP"):
        env.pop(name, None)
    env.update(LOGNAME=user, USER=user, SHELL=shell, HOME=home, TERM=termname)
    return env


class Tty:
    """Owns the file descriptor of the program's terminal and moves bytes across it."""

    def __init__(self, terminal, fd=None):
        self.terminal = terminal
        self.fd = fd
        self.pid = None
        self._pending = b""
        self._own_printer = None

    def _open_printer(self, out):
        screen = self.terminal.screen
        screen.mode |= TermMode.PRINT
        if out == "-":
            self.terminal.set_printer(sys.stdout.buffer)
            return
        try:
            fd = os.open(out, os.O_WRONLY | os.O_CREAT, 0o666)
        except OSError as error:
            log.error("Error opening %s:%s", out, error.strerror)
            self.terminal.set_printer(None)
            return
        stream = os.fdopen(fd, "wb")
        self._own_printer = stream
        self.terminal.set_printer(stream)

    def spawn(self, cmd=None, args=None, line=None, out=None):
        """Start the program, or attach to a serial ``line``; returns the descriptor."""
        config = self.terminal.config
        if out:
            self._open_printer(out)

        if line:
            try:
                self.fd = os.open(line, os.O_RDWR)
            except OSError as error:
                raise TtyError(f"open line '{line}' failed: {error.strerror}") from error
            os.dup2(self.fd, 0)
            command = stty_command(config.stty_args, args)
            if subprocess.run(command, shell=True, check=False).returncode != 0:
                log.error("Couldn't call stty")
            return self.fd

        try:
            entry = pwd.getpwuid(os.getuid())
        except KeyError as error:
            raise TtyError("who are you?") from error
        shell = os.environ.get("SHELL") or entry.pw_shell or cmd or DEFAULT_SHELL
        argv = shell_argv(args, config.scroll, config.utmp, shell)
        env = child_environment(
            os.environ, entry.pw_name, entry.pw_dir, shell, config.termname
        )

        try:
            pid, fd = pty.fork()
        except OSError as error:
            raise TtyError(f"fork failed: {error.strerror}") from error
        if pid == 0:
            try:
                for signum in _RESET_SIGNALS:
                    signal.signal(signum, signal.SIG_DFL)
                os.execvpe(argv[0], argv, env)
            finally:
                os._exit(1)
        self.pid = pid
        self.fd = fd
        return fd

    def _reap(self):
        pid, self.pid = self.pid, None
        try:
            _, status = os.waitpid(pid, 0)
        except ChildProcessError:
            return
        if os.WIFEXITED(status) and os.WEXITSTATUS(status):
            raise TtyError(f"child exited with status {os.WEXITSTATUS(status)}")
        if os.WIFSIGNALED(status):
            raise TtyError(f"child terminated due to signal {os.WTERMSIG(status)}")

    def read(self):
        """Read from the program and feed the terminal; returns the bytes read.

        Raises EOFError when the program has gone away and TtyError when it
        failed. An incomplete UTF-8 sequence is kept for the next call.
        """
        try:
            data = os.read(self.fd, BUFSIZ - len(self._pending))
        except OSError as error:
            if error.errno != errno.EIO:
                raise TtyError(f"couldn't read from shell: {error.strerror}") from error
            data = b""
        if not data:
            if self.pid is not None:
                self._reap()
            raise EOFError("the program closed its terminal")
        buffered = self._pending + data
        consumed = self.terminal.write(buffered)
        self._pending = buffered[consumed:]
        return len(data)

    def write(self, data, may_echo=False):
        """Send input to the program, echoing and translating CR as the modes ask."""
        data = bytes(data)
        screen = self.terminal.screen
        screen.scroll_back_down(screen.scr)
        if may_echo and screen.mode & TermMode.ECHO:
            self.terminal.write(data, True)
        if screen.mode & TermMode.CRLF:
            data = data.replace(b"\r", b"\r\n")
        self.write_raw(data)

    def write_raw(self, data):
        """Write in small pieces, draining the program's output when it backs up."""
        view = memoryview(bytes(data))
        limit = WRITE_LIMIT
        while view:
            readable, writable, _ = select.select([self.fd], [self.fd], [])
            if writable:
                try:
                    written = os.write(self.fd, view[:limit])
                except OSError as error:
                    raise TtyError(f"write error on tty: {error.strerror}") from error
                if written < len(view):
                    if len(view) < limit:
                        limit = self.read()
                    view = view[written:]
                else:
                    break
            if readable:
                limit = self.read()

    def resize(self, pixel_width, pixel_height):
        """Tell the program the terminal's size in cells and pixels."""
        screen = self.terminal.screen
        size = struct.pack("HHHH", screen.rows, screen.cols, pixel_width, pixel_height)
        try:
            fcntl.ioctl(self.fd, termios.TIOCSWINSZ, size)
        except OSError as error:
            log.error("Couldn't set window size: %s", error.strerror)

    def hangup(self):
        """Send SIGHUP to the program."""
        if self.pid is not None:
            os.kill(self.pid, signal.SIGHUP)

    def send_break(self):
        try:
            termios.tcsendbreak(self.fd, 0)
        except (OSError, termios.error) as error:
            log.error("Error sending break: %s", error)

    def close(self):
        if self.fd is not None:
            os.close(self.fd)
            self.fd = None
        if self._own_printer is not None:
            self._own_printer.close()
            self._own_printer = None
            self.terminal.set_printer(None)