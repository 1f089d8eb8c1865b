"""Terminal and headless front ends for the token bag."""
