# couch_kernel/log.py
"""Console output shared by the resolver and the app factory."""


def log(msg: str, *, verbose: bool = True) -> None:
    if verbose:
        print(msg, flush=True)
