from __future__ import annotations
from pathlib import Path
from typing import Any, List, Optional

import click

from . import __version__, config
from .cards import Card, Field
from .errors import LoadError, NavigationError, ParseError, SaveError
from .persistence import load_session
from .session import Session

DEFAULT_FRONT = "word"
DEFAULT_BACK = "phon,translation,example,comment"

HELP = """Commands:
  n, next            next card          p, prev          previous card
  nextdeck, prevdeck change deck        deck N|NAME      select a deck
  nodeck             unselect deck      card N           select card N of the deck
  show, flip         front/back side    pick             weighted random card
  options            multiple choice    +, promote       correct, move up
  -, demote          incorrect, down    decks, list      overview
  filter [QUERY]     set/clear filter   set KEY [VALUE]  change a setting
  unset KEY          remove a setting   toggle KEY       toggle a flag
  save               save session       q, quit          save and exit"""


def _side(session: Session, side: str) -> List[Field]:
    default = DEFAULT_FRONT if side == "front" else DEFAULT_BACK
    key = f"{session.mode}.{side}"
    if key not in session.settings:
        return Field.parse_list(default)
    return session.fields(key)


def _echo_card(session: Session, card: Optional[Card], side: str = "front") -> None:
    if card is None:
        click.echo("No card.")
        return
    for fld in _side(session, side):
        values = card.values(fld)
        if values:
            click.echo(f"{fld.value}: {' | '.join(values)}")


def _prompt_line(session: Session) -> str:
    deck = session.current_deck_name()
    if deck is None:
        where = "Deck: none"
    else:
        where = f"Deck: #{session.deck_index + 1}/{len(session.decks)} {deck}"
        if session.card_index is not None:
            where += f"  Card: #{session.card_index + 1}/{len(session.decks[session.deck_index])}"
    return f"[{Path(session.filename).stem}] Mode: {session.mode}  {where}"


def _set(session: Session, key: str, value: Optional[str]) -> None:
    if value is None:
        session.set_flag(key)
        click.echo(f"{key} enabled")
        return
    if key.endswith(".front") or key.endswith(".back"):
        Field.parse_list(value)
    try:
        session.set_int(key, int(value))
    except ValueError:
        session.set_setting(key, value)
    click.echo(f"{key} = {value}")


def _options(session: Session) -> None:
    options, correct_index = session.pick_options()
    back = _side(session, "back")
    for i, card in enumerate(options, 1):
        shown = next((card.values(f) for f in back if card.values(f)), card.words)
        click.echo(f"{i}) {' | '.join(shown)}")
    answer = click.prompt("Answer", type=click.IntRange(1, len(options)))
    if answer - 1 == correct_index:
        move = session.promote()
        click.echo("✅ Correct!")
    else:
        move = session.demote()
        click.echo(f"❌ Incorrect, the answer was {correct_index + 1}")
    _echo_move(session, move)


def _echo_move(session: Session, move: Any) -> None:
    if move.moved:
        click.echo(f"Moved to deck {session.deck_names[move.target]}")
    else:
        click.echo(f"Stays in deck {session.deck_names[move.target]}")


def handle_command(session: Session, line: str) -> bool:
    """Run one command of the interactive loop. Returns False when the loop should stop."""
    words = line.strip().split(" ", 1)
    cmd = words[0].lower()
    arg = words[1].strip() if len(words) > 1 else ""

    try:
        if cmd in ("q", "quit", "exit"):
            session.save()
            return False
        elif cmd in ("n", "next"):
            _echo_card(session, session.next_card())
        elif cmd in ("p", "prev", "previous"):
            _echo_card(session, session.previous_card())
        elif cmd == "nextdeck":
            _echo_card(session, session.next_deck())
        elif cmd == "prevdeck":
            _echo_card(session, session.previous_deck())
        elif cmd == "deck":
            if arg.isdigit():
                session.select_deck(int(arg))
            else:
                session.select_deck_by_name(arg)
            click.echo(f"Selected deck {session.current_deck_name()}")
        elif cmd == "nodeck":
            session.unselect_deck()
        elif cmd == "card":
            if not arg.isdigit():
                click.echo("Usage: card N")
            else:
                session.select_card(int(arg))
                _echo_card(session, session.current_card())
        elif cmd == "show":
            _echo_card(session, session.current_card())
        elif cmd == "flip":
            card = session.visit()
            _echo_card(session, card, "back")
        elif cmd == "pick":
            card = session.pick_card()
            if card is None:
                click.echo("No cards match.")
            else:
                _echo_card(session, session.jump_to_card(card.id))
        elif cmd == "options":
            _options(session)
        elif cmd in ("+", "promote"):
            _echo_move(session, session.promote())
        elif cmd in ("-", "demote"):
            _echo_move(session, session.demote())
        elif cmd == "decks":
            for i, (name, count) in enumerate(session.deck_counts(), 1):
                marker = "*" if session.deck_index == i - 1 else " "
                click.echo(f"{marker}{i}. {name} ({count})")
        elif cmd in ("ls", "list"):
            if session.deck_index is None:
                click.echo("No deck selected.")
            else:
                for i, card in enumerate(session.cards_in_deck(session.deck_index), 1):
                    click.echo(f"{i}. {card}")
        elif cmd == "filter":
            try:
                session.set_filter(arg)
            except ParseError as e:
                session.clear_filter()
                click.echo(f"{e} (filter cleared)")
            else:
                click.echo(f"Filter: {session.filter_query or '(none)'}")
        elif cmd == "set":
            if not arg:
                click.echo("No setting specified")
            else:
                key, _, value = arg.partition(" ")
                _set(session, key, value.strip() or None)
        elif cmd == "unset":
            if not arg:
                click.echo("No setting specified")
            else:
                session.unset(arg)
        elif cmd == "toggle":
            if not arg:
                click.echo("No setting specified")
            else:
                click.echo("enabled" if session.toggle_flag(arg) else "disabled")
        elif cmd == "save":
            click.echo(f"Saved to {session.save()}")
        elif cmd in ("h", "help", "?"):
            click.echo(HELP)
        elif cmd:
            click.echo("Invalid command, try 'help'")
    except NavigationError as e:
        click.echo(f"⚠️  {e}")
    except ParseError as e:
        click.echo(f"⚠️  {e}")
    except SaveError as e:
        click.echo(f"❌ {e}")
    return True


def run_loop(session: Session) -> None:
    """Prompt for commands until quit; end of input saves and exits as well."""
    try:
        while True:
            click.echo(_prompt_line(session))
            line = click.prompt("", prompt_suffix=">>> ", default="", show_default=False)
            if not handle_command(session, line):
                return
    except click.Abort:
        try:
            session.save()
        except SaveError as e:
            raise click.ClickException(str(e))


@click.group()
@click.option("--datadir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Vocabulary set directory (default ~/.config/vocage/data, or $VOCAGE_DATA_DIR)")
@click.option("--sessiondir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Session directory (default ~/.config/vocage/sessions, or $VOCAGE_SESSION_DIR)")
@click.option("--debug", is_flag=True, help="Verbose logging")
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx: click.Context, datadir: Optional[Path], sessiondir: Optional[Path], debug: bool) -> None:
    """Learn vocabulary with Leitner spaced repetition."""
    config.setup_logging(debug or None)
    ctx.ensure_object(dict)
    ctx.obj["datadir"] = datadir or config.default_data_dir()
    ctx.obj["sessiondir"] = sessiondir or config.default_session_dir()
    config.ensure_dirs(ctx.obj["datadir"], ctx.obj["sessiondir"])


@cli.command("sets")
@click.pass_context
def sets(ctx: click.Context) -> None:
    """List available vocabulary sets."""
    for name in config.list_sets(ctx.obj["datadir"]):
        click.echo(name)


@cli.command("sessions")
@click.pass_context
def sessions(ctx: click.Context) -> None:
    """List saved sessions."""
    for name in config.list_sessions(ctx.obj["sessiondir"]):
        click.echo(name)


@cli.command("start")
@click.argument("set_name")
@click.argument("session_name", required=False)
@click.option("--decks", default=None, help="Comma separated deck names")
@click.pass_context
def start(ctx: click.Context, set_name: str, session_name: Optional[str], decks: Optional[str]) -> None:
    """Start a new session on a vocabulary set."""
    set_file = config.set_path(set_name, ctx.obj["datadir"])
    filename = config.session_path(session_name or set_file.stem, ctx.obj["sessiondir"])
    deck_names = [d.strip() for d in decks.split(",") if d.strip()] if decks else None
    try:
        session = Session.create(filename, set_file, deck_names)
    except LoadError as e:
        raise click.ClickException(str(e))
    click.echo(f"Started session {filename} with {len(session.collection)} cards")
    run_loop(session)


@cli.command("resume")
@click.argument("session_name")
@click.pass_context
def resume(ctx: click.Context, session_name: str) -> None:
    """Resume a saved session."""
    filename = config.session_path(session_name, ctx.obj["sessiondir"])
    try:
        session = load_session(filename, ctx.obj["datadir"])
    except LoadError as e:
        raise click.ClickException(str(e))
    run_loop(session)


if __name__ == "__main__":
    cli()
