"""Device-side core: durable SOS queue, sync lifecycle and payment confirmation."""
