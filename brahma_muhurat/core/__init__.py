"""Pure computation: geo validation, time normalisation, refraction, solar engines, windows."""
