"""Building blocks for analysing Art-Net and sACN captures: UDP decoding, flows, DMX universes and conflicts."""

__version__ = "0.1.0"