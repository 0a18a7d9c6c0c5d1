"""
ProfileHub Backend — Services Layer
=====================================

Service Inventory:
    - UserStore: Motor wrapper over the `users` collection
    - ImageService: image upload validation and storage
    - PasswordService: bcrypt hashing and verification
    - UserService: orchestrates the three for every users operation
"""
