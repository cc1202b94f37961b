"""safecircle: SOS alert queue and payment backend."""
