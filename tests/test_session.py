"""End-to-end tests for the authoring session with stubbed AI calls."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable

import pytest

from fitblog.ai import RemoteCallError, RequestCancelled
from fitblog.app.session import AIRequestInProgressError, AuthoringSession
from fitblog.core.cancellation import CancellationToken
from fitblog.storage import LocalStore


@pytest.fixture
def make_session(
    tmp_path: Path, make_generator, make_reviser, make_models, generated, revised
) -> Callable[..., AuthoringSession]:
    def _make(*, gen=None, rev=None, autosave_interval: float = 60.0) -> AuthoringSession:
        return AuthoringSession(
            LocalStore(tmp_path),
            generator=make_generator(gen or make_models(generated)),
            reviser=make_reviser(rev or make_models(revised)),
            autosave_interval=autosave_interval,
        )

    return _make


def _generate(session: AuthoringSession, token: CancellationToken | None = None):
    return asyncio.run(
        session.generate(
            topic="speedbike",
            language="English",
            instructions="",
            token=token or CancellationToken(),
        )
    )


def test_generate_revise_and_save(tmp_path: Path, make_session, revised) -> None:
    session = make_session()

    draft = _generate(session)
    assert draft.revision_history == ()
    assert LocalStore(tmp_path).load_draft() == draft

    asyncio.run(session.revise("quieter please", token=CancellationToken()))
    result = asyncio.run(session.revise("add a warranty note", token=CancellationToken()))
    assert [entry.request for entry in result.revision_history] == [
        "quieter please",
        "add a warranty note",
    ]
    assert result.content == revised["content"]

    article = session.save_to_library()
    assert session.draft is None
    assert LocalStore(tmp_path).load_draft() is None
    assert [a.id for a in LocalStore(tmp_path).load_articles()] == [article.id]
    assert article.title == result.title
    assert article.content == result.content


def test_generation_sends_library_articles_of_same_topic(
    make_session, make_models, generated
) -> None:
    gen = make_models(generated)
    session = make_session(gen=gen)
    session.library.add_reference(
        title="Our spin bike review", content="old text", topic="speedbike", language="中文"
    )
    session.library.add_reference(
        title="Reformer review", content="old text", topic="PILATES", language="中文"
    )

    _generate(session)

    prompt = gen.calls[0]["contents"]
    assert "Our spin bike review" in prompt
    assert "Reformer review" not in prompt


def test_failed_generation_keeps_existing_draft(tmp_path: Path, make_session, make_models) -> None:
    original = _generate(make_session())

    failing = make_session(gen=make_models(error=TimeoutError("slow")))
    with pytest.raises(RemoteCallError):
        _generate(failing)

    assert failing.draft == original
    assert LocalStore(tmp_path).load_draft() == original
    assert not failing.busy


def test_cancelled_revision_leaves_draft_untouched(
    tmp_path: Path, make_session, make_models, revised
) -> None:
    token = CancellationToken()
    session = make_session(rev=make_models(revised, on_call=token.cancel))
    draft = _generate(session)

    with pytest.raises(RequestCancelled):
        asyncio.run(session.revise("rewrite everything", token=token))

    assert session.draft == draft
    assert LocalStore(tmp_path).load_draft().revision_history == ()


def test_second_ai_call_rejected_while_one_is_outstanding(
    make_session, make_models, generated
) -> None:
    async def scenario() -> None:
        gate = asyncio.Event()
        gen = make_models(generated, gate=gate)
        session = make_session(gen=gen)
        first = asyncio.create_task(
            session.generate(topic="speedbike", language="English", token=CancellationToken())
        )
        while not gen.calls:
            await asyncio.sleep(0)
        assert session.busy
        with pytest.raises(AIRequestInProgressError):
            await session.generate(topic="PILATES", language="English", token=CancellationToken())
        gate.set()
        await first
        assert not session.busy

    asyncio.run(scenario())


def test_autosave_keeps_running_while_revision_is_outstanding(
    tmp_path: Path, make_session, make_models, revised
) -> None:
    async def scenario():
        gate = asyncio.Event()
        rev = make_models(revised, gate=gate)
        session = make_session(rev=rev, autosave_interval=0.01)
        draft = await session.generate(
            topic="speedbike", language="English", token=CancellationToken()
        )
        async with session.autosave() as autosave:
            pending = asyncio.create_task(
                session.revise("quieter please", token=CancellationToken())
            )
            while not rev.calls:
                await asyncio.sleep(0)
            ticks_at_start = autosave.ticks
            while autosave.ticks < ticks_at_start + 2:
                await asyncio.sleep(0.01)
            assert session.busy
            stamped = session.draft
            assert LocalStore(tmp_path).load_draft() == stamped
            gate.set()
            result = await pending
        return draft, stamped, result

    draft, stamped, result = asyncio.run(scenario())

    assert stamped.last_saved > draft.last_saved
    assert stamped.revision_history == ()
    assert [entry.request for entry in result.revision_history] == ["quieter please"]
    assert result.last_saved >= stamped.last_saved


def test_revise_rejects_blank_request(make_session) -> None:
    session = make_session()
    _generate(session)
    with pytest.raises(ValueError):
        asyncio.run(session.revise("   ", token=CancellationToken()))


def test_edit_and_discard(tmp_path: Path, make_session) -> None:
    session = make_session()
    _generate(session)
    edited = session.edit_draft(title="Hand-tuned title")
    assert LocalStore(tmp_path).load_draft().title == edited.title

    session.discard_draft()
    assert session.draft is None
    assert LocalStore(tmp_path).load_draft() is None
