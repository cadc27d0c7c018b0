from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from fedmarket.api_client import APIClient

app = typer.Typer(name="fm", help="FedMarket CLI")
console = Console()

_global_api_key: str | None = None


@app.callback()
def main(
    api_key: Optional[str] = typer.Option(None, "--api-key", envvar="FM_API_KEY", help="API key"),
):
    """FedMarket CLI: inspect tasks, run reward simulations and synthetic training."""
    global _global_api_key
    _global_api_key = api_key


def _get_api(host: str = "localhost", port: int = 8000) -> APIClient:
    return APIClient(base_url=f"http://{host}:{port}", api_key=_global_api_key)


@app.command()
def ping(
    host: str = typer.Option("localhost", help="Server host"),
    port: int = typer.Option(8000, help="API port"),
):
    """Check if the server is reachable."""
    try:
        client = _get_api(host, port)
        result = client.health()
        client.close()
        console.print(f"[green]FedMarket is up:[/green] {result}")
    except Exception as e:
        console.print(f"[red]FedMarket unreachable:[/red] {e}")
        raise typer.Exit(code=1)


@app.command()
def tasks(
    status_filter: Optional[str] = typer.Option(None, "--status", help="Filter by status"),
    host: str = typer.Option("localhost", help="Server host"),
    port: int = typer.Option(8000, help="API port"),
):
    """List training tasks."""
    try:
        client = _get_api(host, port)
        task_list = client.list_tasks(status=status_filter)
        client.close()
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    if not task_list:
        console.print("[dim]No tasks.[/dim]")
        return

    table = Table(title="Tasks")
    table.add_column("ID", style="dim", max_width=8)
    table.add_column("Title", style="bold")
    table.add_column("Status")
    table.add_column("Accuracy", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Reward Pool", justify="right")

    for t in task_list:
        status_style = "green" if t["status"] == "COMPLETED" else "yellow"
        table.add_row(
            t["id"][:8],
            t["title"],
            f"[{status_style}]{t['status']}[/{status_style}]",
            f"{t['current_accuracy'] * 100:.2f}%",
            f"{t['target_accuracy'] * 100:.2f}%",
            f"{t['reward_pool']:.2f}",
        )
    console.print(table)


@app.command()
def simulate(
    task_id: str = typer.Argument(..., help="Task ID"),
    contributor_id: str = typer.Argument(..., help="Contributor user ID"),
    rounds: Optional[int] = typer.Option(None, "--rounds", min=1, help="Rounds to simulate"),
    host: str = typer.Option("localhost", help="Server host"),
    port: int = typer.Option(8000, help="API port"),
):
    """Run federated-learning reward rounds for a contributor."""
    try:
        client = _get_api(host, port)
        outcome = client.simulate(task_id, contributor_id, rounds=rounds)
        client.close()
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    table = Table(title=f"Simulation {task_id[:8]}")
    table.add_column("Round", justify="right")
    table.add_column("Improvement (bp)", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Reward", justify="right")
    for r in outcome["results"]:
        table.add_row(
            str(r["round"]),
            f"{r['improvement']:.1f}",
            f"{r['new_accuracy'] * 100:.2f}%",
            f"{r['reward_amount']:.4f}",
        )
    console.print(table)

    reached = "[green]yes[/green]" if outcome["target_reached"] else "[yellow]no[/yellow]"
    console.print(f"Final accuracy: {outcome['final_accuracy'] * 100:.2f}%  target reached: {reached}")


@app.command()
def status(
    task_id: str = typer.Argument(..., help="Task ID"),
    host: str = typer.Option("localhost", help="Server host"),
    port: int = typer.Option(8000, help="API port"),
):
    """Show a task's training progress and completed rounds."""
    try:
        client = _get_api(host, port)
        info = client.simulation_status(task_id)
        client.close()
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    task = info["task"]
    console.print(f"[bold]{task['title']}[/bold] ({task['status']})")
    console.print(
        f"  Accuracy: {info['current_accuracy'] * 100:.2f}% of {info['target_accuracy'] * 100:.2f}%"
        f" ({info['progress']:.1f}% progress)"
    )
    console.print(
        f"  Rounds: {info['rounds_completed']}  Contributions: {info['total_contributions']}"
    )


@app.command()
def train(
    task_type: str = typer.Option("classification", help="classification, regression or sentiment"),
    model_type: str = typer.Option("dense", help="Model architecture tag"),
    epochs: int = typer.Option(50, min=1, help="Epochs"),
    learning_rate: float = typer.Option(0.001, help="Learning rate"),
    num_features: int = typer.Option(10, help="Input features"),
    num_classes: int = typer.Option(3, help="Output classes"),
    host: str = typer.Option("localhost", help="Server host"),
    port: int = typer.Option(8000, help="API port"),
):
    """Run a synthetic training job and print its summary."""
    config = {
        "task_type": task_type,
        "model_type": model_type,
        "hyperparameters": {"epochs": epochs, "learning_rate": learning_rate},
        "dataset": {"num_features": num_features, "num_classes": num_classes},
    }
    try:
        client = _get_api(host, port)
        result = client.train(config)
        client.close()
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    summary = result["model_summary"]
    console.print(f"[bold]{result['model_id']}[/bold] ({summary['architecture']}, {summary['task_type']})")
    console.print(f"  Parameters: {summary['total_params']:,} in {summary['layers']} layers")
    console.print(f"  Final accuracy: {summary['final_accuracy'] * 100:.2f}%")
    console.print(f"  Final loss: {summary['final_loss']:.4f}")
    console.print(f"  Epochs: {summary['epochs_trained']}")


if __name__ == "__main__":
    app()
