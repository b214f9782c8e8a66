"""Calendar utilities and the booking error taxonomy"""
