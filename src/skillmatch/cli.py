"""Typer CLI entry point for SkillMatch."""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from skillmatch.config import load_config
from skillmatch.formatters import format_date, format_time, score_style, status_style, truncate

app = typer.Typer(
    name="skillmatch",
    help="SkillMatch: job marketplace client",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    from skillmatch.logging_config import configure_logging

    configure_logging("DEBUG" if verbose else _get_config().log_level)


def _get_config():
    return load_config(Path("config.yaml"))


def _get_store():
    from skillmatch.session import LocalStore

    config = _get_config()
    return LocalStore(config.state_path, recent_limit=config.search.recent_limit)


def _get_client():
    """REST client with the persisted session restored, if any."""
    from skillmatch.rest.client import RestClient

    client = RestClient(_get_config().backend)
    _get_store().restore_session(client.session)
    return client


def _get_service(client=None):
    from skillmatch.dal import DataService

    return DataService(client or _get_client(), _get_config())


def _require_user(client) -> str:
    if not client.session.is_authenticated:
        console.print("[red]Not signed in. Run 'skillmatch login <email>' first.[/red]")
        raise typer.Exit(1)
    return client.session.user_id


def _report(result) -> None:
    if result.error:
        console.print(f"[yellow]{result.error}[/yellow]")


def _jobs_table(title: str, jobs, scores: dict | None = None) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim", max_width=8)
    if scores is not None:
        table.add_column("Match", justify="right", width=6)
    table.add_column("Title", style="bold", max_width=35)
    table.add_column("Company", max_width=20)
    table.add_column("Location", max_width=20)
    table.add_column("Type", width=10)

    for job in jobs:
        row = [job.id[:8]]
        if scores is not None:
            score = scores.get(job.id)
            row.append(Text(f"{score}%" if score is not None else "—", style=score_style(score)))
        row.extend([job.title, job.company_name, job.location, job.job_type or ""])
        table.add_row(*row)
    return table


@app.command()
def login(
    email: str = typer.Argument(..., help="Account email"),
    password: str = typer.Option(..., prompt=True, hide_input=True),
):
    """Sign in and remember the session."""
    from skillmatch.auth import AuthClient
    from skillmatch.rest.client import RestClient

    client = RestClient(_get_config().backend)
    store = _get_store()
    auth = AuthClient(client, store)
    result = asyncio.run(auth.sign_in(email, password))
    if not result.ok:
        console.print(f"[red]Login failed:[/red] {result.error}")
        raise typer.Exit(1)

    service = _get_service(client)
    profile = asyncio.run(service.profiles.get_profile(client.session.user_id))
    if profile.data and profile.data.role:
        client.session.role = profile.data.role
        store.save_session(client.session)

    role = client.session.role.value if client.session.role else "unknown role"
    console.print(f"[bold green]Signed in[/bold green] as {email} ({role})")


@app.command()
def logout():
    """Forget the stored session."""
    from skillmatch.auth import AuthClient

    AuthClient(_get_client(), _get_store()).sign_out()
    console.print("Signed out.")


@app.command()
def jobs(location: str | None = typer.Option(None, "--location", "-l", help="Location substring")):
    """List open jobs you have not applied to."""
    client = _get_client()
    user_id = _require_user(client)
    result = asyncio.run(_get_service(client).jobs.fetch_jobs_excluding_applied(user_id, location))
    _report(result)
    if not result.data:
        console.print("[yellow]No jobs found.[/yellow]")
        return
    console.print(_jobs_table(f"Jobs ({len(result.data)} results)", result.data))


@app.command()
def search(term: str = typer.Argument(..., help="Search title, company and description")):
    """Search jobs and remember the term."""
    _get_store().add_recent_search(term)
    result = asyncio.run(_get_service().jobs.search_jobs(term))
    _report(result)
    if not result.data:
        console.print(f"[yellow]No jobs match '{term}'.[/yellow]")
        return
    console.print(_jobs_table(f"Search: {term}", result.data))


@app.command()
def recent(remove: str | None = typer.Option(None, "--remove", help="Forget a search term")):
    """Show recent search terms."""
    store = _get_store()
    terms = store.remove_recent_search(remove) if remove else store.recent_searches()
    if not terms:
        console.print("[dim]No recent searches.[/dim]")
        return
    for term in terms:
        console.print(f"  {term}")


@app.command()
def recommend():
    """Jobs ranked by how well they match your skills and headline."""
    client = _get_client()
    user_id = _require_user(client)
    result = asyncio.run(_get_service(client).recommendations.fetch_recommendations(user_id))
    _report(result)
    if not result.data:
        console.print("[yellow]No recommendations yet. Add skills to your profile.[/yellow]")
        return
    scores = {r.job.id: r.match_score for r in result.data}
    console.print(_jobs_table("AI Recommendations", [r.job for r in result.data], scores))


@app.command()
def apply(job_id: str = typer.Argument(..., help="Job ID")):
    """Apply to a job."""
    client = _get_client()
    user_id = _require_user(client)
    result = asyncio.run(_get_service(client).applications.apply_to_job(job_id, user_id))
    if result.is_duplicate:
        console.print(f"[yellow]{result.error}[/yellow]")
        return
    if not result.ok:
        console.print(f"[red]Application failed:[/red] {result.error}")
        raise typer.Exit(1)
    console.print("[bold green]Application submitted![/bold green]")


@app.command()
def applied():
    """Your applications and their status."""
    client = _get_client()
    user_id = _require_user(client)
    result = asyncio.run(_get_service(client).applications.fetch_applications_with_job(user_id))
    _report(result)
    if not result.data:
        console.print("[yellow]No applications yet.[/yellow]")
        return

    table = Table(title=f"Applications ({len(result.data)})")
    table.add_column("ID", style="dim", max_width=8)
    table.add_column("Job", style="bold", max_width=35)
    table.add_column("Company", max_width=20)
    table.add_column("Status", width=12)
    table.add_column("Applied", width=10)
    for app_ in result.data:
        job = app_.job
        table.add_row(
            app_.id[:8],
            job.title if job else "—",
            job.company_name if job else "—",
            Text(app_.status.value, style=status_style(app_.status)),
            format_date(app_.submitted_at),
        )
    console.print(table)


@app.command()
def save(
    job_id: str = typer.Argument(..., help="Job ID"),
    remove: bool = typer.Option(False, "--remove", help="Remove the bookmark"),
):
    """Bookmark a job (or remove the bookmark)."""
    client = _get_client()
    user_id = _require_user(client)
    repo = _get_service(client).jobs
    result = asyncio.run(repo.unsave_job(job_id, user_id) if remove else repo.save_job(job_id, user_id))
    if not result.ok:
        console.print(f"[red]{result.error}[/red]")
        raise typer.Exit(1)
    console.print("Removed from saved jobs." if remove else "Saved.")


@app.command()
def saved():
    """Your saved jobs."""
    client = _get_client()
    user_id = _require_user(client)
    result = asyncio.run(_get_service(client).jobs.fetch_saved_jobs(user_id))
    _report(result)
    bookmarked = [s.job for s in result.data or [] if s.job]
    if not bookmarked:
        console.print("[yellow]No saved jobs.[/yellow]")
        return
    console.print(_jobs_table("Saved Jobs", bookmarked))


@app.command()
def applicants(job_id: str | None = typer.Option(None, "--job", "-j", help="Only this job")):
    """Applicants to your job postings."""
    client = _get_client()
    user_id = _require_user(client)
    result = asyncio.run(_get_service(client).employer.fetch_applicants_for_employer(user_id, job_id))
    _report(result)
    if not result.data:
        console.print("[yellow]No applicants yet.[/yellow]")
        return

    table = Table(title=f"Applicants ({len(result.data)})")
    table.add_column("App", style="dim", max_width=8)
    table.add_column("Match", justify="right", width=6)
    table.add_column("Name", style="bold", max_width=25)
    table.add_column("Headline", max_width=25)
    table.add_column("Applied For", max_width=25)
    table.add_column("Status", width=12)
    for view in result.data:
        table.add_row(
            view.application_id[:8],
            Text(f"{view.match_score}%", style=score_style(view.match_score)),
            view.name,
            view.headline,
            view.applied_for,
            Text(view.status.value, style=status_style(view.status)),
        )
    console.print(table)


@app.command()
def dashboard():
    """Employer dashboard: postings and applicant counts."""
    client = _get_client()
    user_id = _require_user(client)
    result = asyncio.run(_get_service(client).employer.fetch_dashboard(user_id))
    if not result.ok:
        console.print(f"[red]{result.error}[/red]")
        raise typer.Exit(1)
    stats = result.data

    console.print(Panel(
        f"[bold]Active Jobs:[/bold] {stats.active_jobs}\n"
        f"[bold]Total Applicants:[/bold] {stats.total_applicants}\n"
        f"[bold]New Today:[/bold] {stats.new_today}",
        title="Dashboard",
    ))
    if not stats.jobs:
        return

    table = Table(title="Your Postings")
    table.add_column("ID", style="dim", max_width=8)
    table.add_column("Title", style="bold", max_width=35)
    table.add_column("Applicants", justify="right")
    table.add_column("New", justify="right")
    table.add_column("Listing", width=14)
    table.add_column("Status", width=8)
    for job in stats.jobs:
        table.add_row(
            job.id[:8], job.title, str(job.applicants), str(job.new_applicants),
            job.days_left_label, job.status.value,
        )
    console.print(table)


@app.command()
def chats():
    """Conversations, one per application."""
    from skillmatch.models import Role

    client = _get_client()
    user_id = _require_user(client)
    service = _get_service(client)
    if client.session.role == Role.EMPLOYER:
        result = asyncio.run(service.employer.fetch_employer_chats(user_id))
    else:
        result = asyncio.run(service.applications.fetch_seeker_chats(user_id))
    _report(result)
    if not result.data:
        console.print("[yellow]No conversations yet.[/yellow]")
        return

    table = Table(title="Chats")
    table.add_column("Application", style="dim", max_width=8)
    table.add_column("With", style="bold", max_width=25)
    table.add_column("Last Message", max_width=50)
    table.add_column("When", width=16)
    for chat in result.data:
        unread = f" [cyan]({chat.unread})[/cyan]" if chat.unread else ""
        table.add_row(
            chat.application_id[:8],
            chat.counterpart + unread,
            truncate(chat.preview, 50),
            format_time(chat.last_activity_at, with_date=True),
        )
    console.print(table)


def _print_message(message, user_id: str) -> None:
    who = "[bold blue]me[/bold blue]" if message.sender_id == user_id else "[bold]them[/bold]"
    console.print(f"[dim]{format_time(message.created_at)}[/dim] {who}: {message.content}")


@app.command()
def messages(
    application_id: str = typer.Argument(..., help="Application ID"),
    follow: bool = typer.Option(False, "--follow", "-f", help="Keep polling for new messages"),
):
    """Show a conversation."""
    from skillmatch.chat.poller import MessagePoller

    client = _get_client()
    user_id = _require_user(client)
    config = _get_config()
    poller = MessagePoller(
        _get_service(client).messages, application_id, interval_sec=config.chat.poll_interval_sec
    )

    async def _run():
        from apscheduler.schedulers.asyncio import AsyncIOScheduler

        await poller.poll_once()
        shown = poller.state.visible
        for message in shown:
            _print_message(message, user_id)
        if not follow:
            return

        scheduler = AsyncIOScheduler()
        poller.start(scheduler)
        scheduler.start()
        try:
            while True:
                await asyncio.sleep(poller.interval_sec)
                current = poller.state.visible
                for message in current[len(shown):]:
                    _print_message(message, user_id)
                shown = current
        finally:
            poller.stop()
            scheduler.shutdown(wait=False)

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        pass


@app.command()
def send(
    application_id: str = typer.Argument(..., help="Application ID"),
    content: str = typer.Argument(..., help="Message text"),
):
    """Send a message in a conversation."""
    client = _get_client()
    user_id = _require_user(client)
    result = asyncio.run(_get_service(client).messages.send_message(application_id, user_id, content))
    if not result.ok:
        console.print(f"[red]Send failed:[/red] {result.error}")
        raise typer.Exit(1)
    console.print("[green]Sent.[/green]")


if __name__ == "__main__":
    app()
