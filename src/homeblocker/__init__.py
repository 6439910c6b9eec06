"""homeblocker package"""
