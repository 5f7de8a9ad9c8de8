import logging
import signal
import sys
import threading

from tapminer import create_app, get_game, socketio

app = create_app()


def install_fault_logging(logger):
    """Log uncaught exceptions from any thread instead of dying on them."""
    def _log_uncaught(exc_type, exc, tb):
        logger.error("[fault] uncaught exception", exc_info=(exc_type, exc, tb))

    def _log_thread(args):
        logger.error(
            f"[fault] uncaught exception in thread {getattr(args.thread, 'name', '?')}",
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )

    sys.excepthook = _log_uncaught
    threading.excepthook = _log_thread


def install_signal_handlers(game):
    def _shutdown(signum, frame):
        app.logger.info(f"[signal] received={signal.Signals(signum).name}")
        game.shutdown()
        sys.exit(0)

    signal.signal(signal.SIGTERM, _shutdown)
    signal.signal(signal.SIGINT, _shutdown)


if __name__ == '__main__':
    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    install_fault_logging(app.logger)
    game = get_game(app)
    install_signal_handlers(game)
    game.start()
    app.logger.info(f"Tap Miner game server running on port {app.config['PORT']}")
    socketio.run(app, host=app.config['HOST'], port=app.config['PORT'], allow_unsafe_werkzeug=True)
